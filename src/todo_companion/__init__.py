"""
todo-companion: a Telegram to-do list bot.

Subpackages:
- core: calendar, payloads, sessions, conversation flows, ports
- tasks: task models, SQLite store, reminder scheduler
- connectors: Telegram and console transports
- cli: settings wiring, command registry, entrypoint
"""

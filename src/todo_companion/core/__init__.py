"""Transport-agnostic core: dialogs, calendar, payload codec and ports."""

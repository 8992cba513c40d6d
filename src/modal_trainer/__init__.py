"""Modal editing trainer: command simulation engine plus session scoring."""

__all__ = [
    "adapters",
    "buffer",
    "actions",
    "commands",
    "config",
    "game",
    "modes",
    "keymaps",
    "runtime",
]

__version__ = "0.1.0"

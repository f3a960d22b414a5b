from sustainwdn.lib.hooks import hooks, action, filter

__all__ = [
    "hooks",
    "action",
    "filter",
]

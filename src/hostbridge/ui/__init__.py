"""Qt integration for host shells built on PySide6."""

from .shell_signals import CommandEndpoint, ShellSignals

__all__ = ["CommandEndpoint", "ShellSignals"]

"""Child process management — spawning, command submission and output pumping.

The shell runs in its own process group with stderr merged into stdout.
Output is read on a background task and delivered, in order, to a view sink.
"""

from conshell.process.child import ChildProcess, ProcessStatus
from conshell.process.pump import OutputPump
from conshell.process.runner import CommandRunner

__all__ = [
    "ChildProcess",
    "ProcessStatus",
    "OutputPump",
    "CommandRunner",
]

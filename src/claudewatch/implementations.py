"""
Real implementations of protocol interfaces.

Production process introspection through psutil, which reads /proc on
Linux and uses libproc on macOS instead of spawning ps/lsof per call.
"""

import os
from typing import List

import psutil

from .exceptions import ProcessIntrospectionError
from .logging_config import get_logger

logger = get_logger("implementations")


def _basename(arg: str) -> str:
    return os.path.basename(arg.rstrip("/")).lower()


def matches_agent(name: str, cmdline: List[str], agent_name: str) -> bool:
    """Does a process look like the agent?

    Matches the process name or the first two command-line tokens (the
    agent is often `node /path/to/claude`) by basename, case-insensitively.
    """
    agent = agent_name.lower()
    if name and name.lower() == agent:
        return True
    for arg in (cmdline or [])[:2]:
        if arg and _basename(arg) == agent:
            return True
    return False


class PsutilProcessInspector:
    """Production implementation of ProcessInspectorInterface using psutil."""

    def __init__(self):
        self._own_pid = os.getpid()

    def list_agent_pids(self, agent_name: str) -> List[str]:
        pids: List[str] = []
        for proc in psutil.process_iter(["pid", "name", "cmdline"]):
            info = proc.info
            pid = info.get("pid")
            if pid is None or pid == self._own_pid:
                continue
            if matches_agent(info.get("name") or "", info.get("cmdline") or [], agent_name):
                pids.append(str(pid))
        return pids

    def get_cwd(self, pid: str) -> str:
        try:
            cwd = psutil.Process(int(pid)).cwd()
        except ValueError as e:
            raise ProcessIntrospectionError(pid, "invalid pid") from e
        except psutil.NoSuchProcess as e:
            raise ProcessIntrospectionError(pid, "process exited") from e
        except psutil.AccessDenied as e:
            raise ProcessIntrospectionError(pid, "access denied") from e
        except psutil.Error as e:
            raise ProcessIntrospectionError(pid, str(e)) from e
        if not cwd:
            raise ProcessIntrospectionError(pid, "no working directory")
        return cwd

"""
Node process control for the failover orchestrator.
Finds store nodes by listening port, kills them, and starts replacements.
"""

import logging
import subprocess
import threading
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

import psutil


class DisruptionAnomaly(Exception):
    """A node could not be found, killed or started as scripted."""
    pass


def port_from_args(launch_args: Sequence[str]) -> Optional[int]:
    """Extract the value of --port from a launch argument list."""
    args = list(launch_args)
    for idx, arg in enumerate(args):
        if arg == '--port' and idx + 1 < len(args):
            value = args[idx + 1]
        elif arg.startswith('--port='):
            value = arg.split('=', 1)[1]
        else:
            continue
        try:
            return int(value)
        except ValueError:
            return None
    return None


@dataclass
class NodeHandle:
    """A node process started by NodeController."""
    port: Optional[int]
    process: subprocess.Popen
    drain_thread: Optional[threading.Thread] = None
    released: bool = field(default=False)

    @property
    def pid(self) -> int:
        return self.process.pid

    def is_running(self) -> bool:
        return not self.released and self.process.poll() is None

    def join_output(self, timeout: float = None):
        """Wait for the output drain thread to finish."""
        if self.drain_thread is not None:
            self.drain_thread.join(timeout)


class NodeController:
    """Locates, terminates and starts store node processes."""

    def __init__(self, executable: str = 'mongod', terminate_timeout: float = 10.0):
        """
        Args:
            executable: Program started for replacement nodes
            terminate_timeout: Seconds to wait for a killed process to exit
        """
        self.executable = executable
        self.terminate_timeout = terminate_timeout
        self._handles: Dict[int, NodeHandle] = {}
        self._lock = threading.Lock()

    def find_process_on_port(self, port: int) -> Optional[int]:
        """
        Find the process listening on a TCP port.

        Args:
            port: Port the node listens on

        Returns:
            PID of the listening process, or None if nothing is listening
        """
        try:
            connections = psutil.net_connections(kind='inet')
        except psutil.AccessDenied:
            # Some platforms only allow per-process inspection
            return self._scan_processes_for_port(port)
        except (psutil.Error, OSError) as e:
            raise DisruptionAnomaly(f"Could not list connections for port {port}: {e}") from e

        for conn in connections:
            if (conn.status == psutil.CONN_LISTEN and conn.laddr
                    and conn.laddr.port == port and conn.pid is not None):
                return conn.pid
        return None

    def _scan_processes_for_port(self, port: int) -> Optional[int]:
        try:
            for proc in psutil.process_iter(['pid', 'name']):
                try:
                    for conn in proc.net_connections(kind='inet'):
                        if conn.status == psutil.CONN_LISTEN and conn.laddr and conn.laddr.port == port:
                            return proc.pid
                except (psutil.AccessDenied, psutil.NoSuchProcess, psutil.ZombieProcess):
                    continue
        except (psutil.Error, OSError) as e:
            raise DisruptionAnomaly(f"Could not scan processes for port {port}: {e}") from e
        return None

    def terminate(self, pid: int):
        """
        Force-kill a process and wait for it to exit.

        Raises:
            DisruptionAnomaly: If the process is gone, protected, or survives the kill
        """
        try:
            proc = psutil.Process(pid)
            name = proc.name()
            proc.kill()
            proc.wait(timeout=self.terminate_timeout)
        except psutil.NoSuchProcess:
            raise DisruptionAnomaly(f"Process {pid} exited before it could be killed")
        except psutil.AccessDenied:
            raise DisruptionAnomaly(f"Access denied killing process {pid}")
        except psutil.TimeoutExpired:
            raise DisruptionAnomaly(
                f"Process {pid} still running {self.terminate_timeout}s after kill")
        except (psutil.Error, OSError) as e:
            raise DisruptionAnomaly(f"Could not kill process {pid}: {e}") from e

        logging.info(f"Killed process {name} (PID {pid})")
        self._release_pid(pid)

    def kill_node_on_port(self, port: int) -> int:
        """
        Kill whatever node is listening on `port`.

        Returns:
            PID of the killed process

        Raises:
            DisruptionAnomaly: If nothing listens on the port or the kill fails
        """
        pid = self.find_process_on_port(port)
        if pid is None:
            raise DisruptionAnomaly(f"No process listening on port {port}")
        self.terminate(pid)
        return pid

    def start_node(self, launch_args: Sequence[str], port: Optional[int] = None) -> NodeHandle:
        """
        Start a replacement node and stream its output into the log.

        Returns once the process is launched, not once the node is serving.

        Raises:
            DisruptionAnomaly: If the process cannot be spawned
        """
        cmd: List[str] = [self.executable] + list(launch_args)
        if port is None:
            port = port_from_args(launch_args)

        try:
            process = subprocess.Popen(
                cmd,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                stdin=subprocess.DEVNULL,
                text=True,
                encoding='utf-8',
                errors='replace',
            )
        except OSError as e:
            raise DisruptionAnomaly(f"Could not start {' '.join(cmd)}: {e}") from e

        handle = NodeHandle(port=port, process=process)
        handle.drain_thread = threading.Thread(
            target=self._drain_output,
            args=(handle,),
            name=f"node-output-{port}",
            daemon=True,
        )
        handle.drain_thread.start()

        with self._lock:
            old = self._handles.get(port)
            if old is not None:
                old.released = True
            self._handles[port] = handle

        logging.info(f"Started {' '.join(cmd)} (PID {process.pid})")
        return handle

    @staticmethod
    def _drain_output(handle: NodeHandle):
        label = handle.port if handle.port is not None else handle.pid
        try:
            for line in handle.process.stdout:
                line = line.rstrip()
                if line:
                    logging.info(f"[node:{label}] {line}")
        except ValueError:
            # Stream closed underneath us during shutdown
            pass
        finally:
            handle.process.stdout.close()
            returncode = handle.process.wait()
            handle.released = True
            logging.info(f"[node:{label}] exited with code {returncode}")

    def _release_pid(self, pid: int):
        with self._lock:
            handles = [h for h in self._handles.values() if h.pid == pid]
        for handle in handles:
            handle.released = True
            handle.join_output(timeout=self.terminate_timeout)

    def handles(self) -> List[NodeHandle]:
        """Handles of nodes started by this controller that are still running."""
        with self._lock:
            return [h for h in self._handles.values() if h.is_running()]

    def shutdown(self, stop_nodes: bool = False):
        """
        Release node handles at the end of a run.

        Args:
            stop_nodes: Kill nodes this controller started instead of leaving
                them running as part of the replica set
        """
        with self._lock:
            handles = list(self._handles.values())

        for handle in handles:
            if stop_nodes and handle.process.poll() is None:
                try:
                    self.terminate(handle.pid)
                except DisruptionAnomaly as e:
                    logging.warning(f"Could not stop node on port {handle.port}: {e}")
            if handle.process.poll() is not None:
                handle.join_output(timeout=self.terminate_timeout)
            else:
                logging.info(f"Leaving node on port {handle.port} running (PID {handle.pid})")

        with self._lock:
            self._handles = {p: h for p, h in self._handles.items() if h.is_running()}

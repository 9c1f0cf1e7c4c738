"""
Qdisc providers - the tc invocations behind each QoS algorithm.

Every install first clears the interface's root qdisc. Failure of that clear
step is ignored ("nothing to clear" is the common case); failure of the
install step is raised with the captured tc output attached.
"""
import logging
from typing import Any, Dict, List, Optional, Tuple

from ..exceptions import CommandExecutionError
from ..utils.command_exec import CommandExecutor
from ..utils.parsers import is_missing_device, parse_qdisc_show

logger = logging.getLogger(__name__)

TBF_DEFAULT_BUFFER = 1600
TBF_DEFAULT_LIMIT = 3000


def format_rate(bandwidth_mbit: int) -> str:
    """Render megabits the way tc expects them, e.g. 500 -> '500mbit'"""
    return f"{bandwidth_mbit}mbit"


class QdiscProvider:
    """Run tc against one host through a CommandExecutor"""

    def __init__(self, executor: CommandExecutor, tc_binary: str = "tc"):
        self.executor = executor
        self.tc_binary = tc_binary

    def _tc(self, *args: str) -> List[str]:
        return [self.tc_binary, *args]

    def _install(self, interface: str, kind: str, *params: str) -> None:
        self.delete_root_qdisc(interface)

        exit_code, output = self.executor.run(
            self._tc("qdisc", "add", "dev", interface, "root", kind, *params)
        )
        if exit_code != 0:
            raise CommandExecutionError(
                f"failed to apply {kind} qdisc: exit status {exit_code}, output: {output.strip()}",
                exit_code=exit_code,
                output=output,
            )
        logger.debug(f"Installed {kind} on {interface} {' '.join(params)}".rstrip())

    def delete_root_qdisc(self, interface: str) -> None:
        """Remove the root qdisc. Errors are ignored; the qdisc might not exist."""
        try:
            exit_code, output = self.executor.run(
                self._tc("qdisc", "del", "dev", interface, "root")
            )
        except CommandExecutionError as e:
            logger.debug(f"Ignoring failure clearing root qdisc on {interface}: {e}")
            return

        if exit_code != 0:
            logger.debug(
                f"Ignoring failure clearing root qdisc on {interface} "
                f"(exit {exit_code}): {output.strip()}"
            )

    def apply_cake(self, interface: str, bandwidth_mbit: int) -> None:
        self._install(interface, "cake", "bandwidth", format_rate(bandwidth_mbit))

    def apply_fq_codel(self, interface: str) -> None:
        # fq_codel has no bandwidth parameter; useful on links already shaped upstream
        self._install(interface, "fq_codel")

    def apply_tbf(
        self,
        interface: str,
        bandwidth_mbit: int,
        buffer: int = TBF_DEFAULT_BUFFER,
        limit: int = TBF_DEFAULT_LIMIT
    ) -> None:
        self._install(
            interface, "tbf",
            "rate", format_rate(bandwidth_mbit),
            "buffer", str(buffer),
            "limit", str(limit),
        )

    def apply_sfq(self, interface: str) -> None:
        self._install(interface, "sfq")

    def apply_pfifo_fast(self, interface: str) -> None:
        # Deleting the root qdisc makes the kernel reinstate its default
        self.delete_root_qdisc(interface)

    def get_current_rule(self, interface: str) -> Tuple[str, Optional[Dict[str, Any]]]:
        """
        Read the interface's qdisc from tc

        Returns:
            (algorithm, settings), or ("", None) when the interface does not exist
        """
        exit_code, output = self.executor.run(self._tc("qdisc", "show", "dev", interface))

        if is_missing_device(output):
            return "", None
        if exit_code != 0:
            raise CommandExecutionError(
                f"failed to execute tc command: exit status {exit_code}, output: {output.strip()}",
                exit_code=exit_code,
                output=output,
            )

        return parse_qdisc_show(output)

import logging
import math
from typing import Any, Dict, List, Optional

from ..exceptions import CommandExecutionError, RuleValidationError, UnsupportedAlgorithmError
from ..models.rules import ALGORITHM_ALIASES, Algorithm, Rule
from ..utils.command_exec import CommandExecutor
from ..utils.parsers import parse_link_list
from .qdisc_providers import TBF_DEFAULT_BUFFER, TBF_DEFAULT_LIMIT, QdiscProvider

logger = logging.getLogger(__name__)


def resolve_algorithm(name: str) -> Algorithm:
    """Map a requested algorithm tag (or alias) to an Algorithm"""
    tag = (name or "").strip().lower()
    if tag in ALGORITHM_ALIASES:
        return ALGORITHM_ALIASES[tag]
    try:
        return Algorithm(tag)
    except ValueError:
        raise UnsupportedAlgorithmError(name)


def _integral_setting(settings: Dict[str, Any], key: str, algorithm: Algorithm,
                      required: bool = True, default: Optional[int] = None) -> Optional[int]:
    """
    Read a non-negative whole number from settings

    JSON decoding may hand us 500.0 for 500; integral floats are accepted,
    anything with a fractional part is rejected rather than truncated.
    """
    value = settings.get(key)
    if value is None:
        if required:
            raise RuleValidationError(
                f"setting '{key}' is required for {algorithm.value.upper()} and must be a number"
            )
        return default

    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise RuleValidationError(f"setting '{key}' must be a number, got {value!r}")
    if isinstance(value, float) and (not math.isfinite(value) or not value.is_integer()):
        raise RuleValidationError(f"setting '{key}' must be a whole number, got {value!r}")
    if value < 0:
        raise RuleValidationError(f"setting '{key}' must not be negative, got {value!r}")

    return int(value)


class QoSManager:
    """
    Apply, inspect and remove root qdiscs on network interfaces.

    Holds no rule state: every read goes to tc and is parsed afresh.
    """

    def __init__(self, executor: CommandExecutor, tc_binary: str = "tc", ip_binary: str = "ip"):
        self.executor = executor
        self.ip_binary = ip_binary
        self.providers = QdiscProvider(executor, tc_binary=tc_binary)

    def apply_rule(self, rule: Rule) -> None:
        """
        Install a rule, replacing whatever root qdisc the interface had

        Raises:
            RuleValidationError: bad interface/settings, before any command runs
            UnsupportedAlgorithmError: unknown algorithm tag
            CommandExecutionError: tc failed to install the qdisc
        """
        interface = (rule.interface or "").strip()
        if not interface:
            raise RuleValidationError("interface is required")

        algorithm = resolve_algorithm(rule.algorithm)
        settings = rule.settings or {}

        if algorithm == Algorithm.CAKE:
            bandwidth = _integral_setting(settings, 'bandwidth_mbit', algorithm)
            self.providers.apply_cake(interface, bandwidth)

        elif algorithm == Algorithm.FQ_CODEL:
            self.providers.apply_fq_codel(interface)

        elif algorithm == Algorithm.TBF:
            bandwidth = _integral_setting(settings, 'bandwidth_mbit', algorithm)
            buffer = _integral_setting(settings, 'buffer', algorithm, required=False,
                                       default=TBF_DEFAULT_BUFFER)
            limit = _integral_setting(settings, 'limit', algorithm, required=False,
                                      default=TBF_DEFAULT_LIMIT)
            self.providers.apply_tbf(interface, bandwidth, buffer=buffer, limit=limit)

        elif algorithm == Algorithm.SFQ:
            self.providers.apply_sfq(interface)

        elif algorithm == Algorithm.PFIFO_FAST:
            self.providers.apply_pfifo_fast(interface)

        logger.info(f"Applied {algorithm.value} rule to {interface}")

    def delete_rule(self, interface: str) -> None:
        """Remove the custom root qdisc. Deleting nothing is not an error."""
        interface = (interface or "").strip()
        if not interface:
            raise RuleValidationError("interface is required")

        self.providers.delete_root_qdisc(interface)
        logger.info(f"Deleted QoS rule from {interface}")

    def get_rule(self, interface: str) -> Optional[Rule]:
        """
        Current rule on the interface, read live from tc

        Returns:
            Rule, or None when tc reports no such interface

        Raises:
            CommandExecutionError: tc failed for any other reason
        """
        interface = (interface or "").strip()
        if not interface:
            raise RuleValidationError("interface is required")

        algorithm, settings = self.providers.get_current_rule(interface)
        if not algorithm:
            return None

        return Rule(interface=interface, algorithm=algorithm, settings=settings or {})

    def list_interfaces(self) -> List[str]:
        """Names of interfaces that are up, loopback excluded"""
        exit_code, output = self.executor.run([self.ip_binary, "-o", "link", "show"])
        if exit_code != 0:
            raise CommandExecutionError(
                f"failed to list interfaces: exit status {exit_code}, output: {output.strip()}",
                exit_code=exit_code,
                output=output,
            )
        return parse_link_list(output)

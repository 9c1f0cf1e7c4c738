"""
Shared fixtures: a fake tc/ip that keeps per-interface qdisc state in memory.
"""
import pytest

from netpilot.services.qos_manager import QoSManager
from netpilot.utils.command_exec import CommandExecutor

DEFAULT_SHOW = "qdisc pfifo_fast 0: root refcnt 2 bands 3 priomap 1 2 2 2 1 2 0 0 1 1 1 1 1 1 1 1 \n"

LINK_OUTPUT = (
    "1: lo: <LOOPBACK,UP,LOWER_UP> mtu 65536 qdisc noqueue state UNKNOWN mode DEFAULT "
    "group default qlen 1000\\    link/loopback 00:00:00:00:00:00 brd 00:00:00:00:00:00\n"
    "2: eth0: <BROADCAST,MULTICAST,UP,LOWER_UP> mtu 1500 qdisc fq_codel state UP mode DEFAULT "
    "group default qlen 1000\\    link/ether 52:54:00:12:34:56 brd ff:ff:ff:ff:ff:ff\n"
    "3: eth1: <BROADCAST,MULTICAST> mtu 1500 qdisc noop state DOWN mode DEFAULT "
    "group default qlen 1000\\    link/ether 52:54:00:12:34:57 brd ff:ff:ff:ff:ff:ff\n"
    "4: veth0@if5: <BROADCAST,MULTICAST,UP,LOWER_UP> mtu 1500 qdisc noqueue state UP mode DEFAULT "
    "group default qlen 1000\\    link/ether 4a:0b:11:22:33:44 brd ff:ff:ff:ff:ff:ff link-netnsid 0\n"
)


def _tc_rate(rate: str) -> str:
    # tc echoes "500mbit" back as "500Mbit"
    return rate[:-4] + "Mbit" if rate.endswith("mbit") else rate


class FakeTc(CommandExecutor):
    """Stand-in for tc and ip that records every invocation"""

    def __init__(self, interfaces=("eth0", "eth1")):
        super().__init__()
        self.interfaces = set(interfaces)
        self.qdiscs = {}
        self.calls = []
        self.fail_add = False
        self.link_output = LINK_OUTPUT

    def run(self, args):
        args = list(args)
        self.calls.append(args)

        if args[0] == "ip":
            return 0, self.link_output

        op, interface = args[2], args[4]
        if interface not in self.interfaces:
            return 1, f'Cannot find device "{interface}"\n'

        if op == "del":
            if interface not in self.qdiscs:
                return 2, "Error: Cannot delete qdisc with handle of zero.\n"
            del self.qdiscs[interface]
            return 0, ""

        if op == "add":
            if self.fail_add:
                return 2, "Error: Specified qdisc kind is unknown.\n"
            self.qdiscs[interface] = (args[6], args[7:])
            return 0, ""

        if op == "show":
            if interface not in self.qdiscs:
                return 0, DEFAULT_SHOW
            return 0, self._render(*self.qdiscs[interface])

        return 1, f"Command \"{op}\" is unknown, try \"tc qdisc help\".\n"

    def _render(self, kind, params):
        if kind == "cake":
            return (
                f"qdisc cake 8001: root refcnt 2 bandwidth {_tc_rate(params[1])} diffserv3 "
                "triple-isolate nonat nowash no-ack-filter split-gso rtt 100ms raw overhead 0 \n"
            )
        if kind == "tbf":
            return f"qdisc tbf 8002: root refcnt 2 rate {_tc_rate(params[1])} burst 1600b lat 8.7ms \n"
        if kind == "fq_codel":
            return (
                "qdisc fq_codel 8003: root refcnt 2 limit 10240p flows 1024 quantum 1514 "
                "target 5ms interval 100ms memory_limit 32Mb ecn drop_batch 64 \n"
            )
        if kind == "sfq":
            return "qdisc sfq 8004: root refcnt 2 limit 127p quantum 1514b depth 127 divisor 1024 \n"
        return f"qdisc {kind} 8005: root refcnt 2 \n"

    def commands(self, op):
        """tc invocations for one qdisc operation ('add', 'del', 'show')"""
        return [c for c in self.calls if c[0] == "tc" and c[2] == op]


@pytest.fixture
def fake_tc():
    return FakeTc()


@pytest.fixture
def manager(fake_tc):
    return QoSManager(fake_tc)

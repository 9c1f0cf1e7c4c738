import re
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

DEFAULT_ALGORITHM = "pfifo_fast"
UNKNOWN_ALGORITHM = "unknown"

# qdisc kinds we recognise in `tc qdisc show` output, mapped to the algorithm we report
KNOWN_QDISCS = {
    'cake': 'cake',
    'fq_codel': 'fq_codel',
    'tbf': 'tbf',
    'sfq': 'sfq',
    'pfifo_fast': DEFAULT_ALGORITHM,
    'noqueue': DEFAULT_ALGORITHM,
}

MISSING_DEVICE_MARKERS = ("does not exist", "Cannot find device")

_QDISC_LINE = re.compile(r'^qdisc\s+(\S+)', re.MULTILINE)
_RATE = re.compile(r'^(\d+(?:\.\d+)?)([KMGT]?)bit$', re.IGNORECASE)
_RATE_UNITS = {'': 1e-6, 'K': 1e-3, 'M': 1, 'G': 1e3, 'T': 1e6}

_NUMBER = r'(\d+(?:\.\d+)?)'
_TOKEN = r'(\S+)'


def _int(value: str) -> int:
    return int(value)


def _str(value: str) -> str:
    return value


# Per-algorithm field rules: (settings key, pattern, converter).
# Each rule is optional; a rule that does not match leaves its key out.
FIELD_RULES: Dict[str, List[Tuple[str, re.Pattern, Optional[Callable[[str], Any]]]]] = {
    'cake': [
        ('bandwidth', re.compile(r'\bbandwidth (\d+(?:\.\d+)?[KMGT]?bit|unlimited)\b', re.IGNORECASE), _str),
        ('diffserv', re.compile(r'\b(diffserv3|diffserv4|diffserv8|besteffort|precedence)\b'), _str),
        ('rtt', re.compile(r'\brtt ' + _NUMBER + r'(us|ms|s)\b'), None),
        ('overhead', re.compile(r'\boverhead (-?\d+)\b'), _int),
    ],
    'fq_codel': [
        ('limit', re.compile(r'\blimit (\d+)p\b'), _int),
        ('flows', re.compile(r'\bflows (\d+)\b'), _int),
        ('quantum', re.compile(r'\bquantum (\d+)b?\b'), _int),
        ('target', re.compile(r'\btarget ' + _TOKEN), _str),
        ('interval', re.compile(r'\binterval ' + _TOKEN), _str),
        ('memory_limit', re.compile(r'\bmemory_limit ' + _TOKEN), _str),
    ],
    'tbf': [
        ('rate', re.compile(r'\brate ' + _TOKEN), _str),
        ('burst', re.compile(r'\bburst ' + _TOKEN), _str),
        ('latency', re.compile(r'\blat(?:ency)? ' + _TOKEN), _str),
        ('limit', re.compile(r'\blimit ' + _TOKEN), _str),
    ],
    'sfq': [
        ('limit', re.compile(r'\blimit (\d+)p\b'), _int),
        ('quantum', re.compile(r'\bquantum (\d+)b?\b'), _int),
        ('depth', re.compile(r'\bdepth (\d+)\b'), _int),
        ('divisor', re.compile(r'\bdivisor (\d+)\b'), _int),
        ('perturb', re.compile(r'\bperturb ' + _TOKEN), _str),
    ],
    DEFAULT_ALGORITHM: [
        ('bands', re.compile(r'\bbands (\d+)\b'), _int),
    ],
}

# Flags reported as bare words rather than "label value" pairs
FLAG_RULES: Dict[str, List[Tuple[str, re.Pattern]]] = {
    'fq_codel': [('ecn', re.compile(r'\becn\b'))],
}

# Settings holding a rate that is also reported in megabits
RATE_KEYS = {'cake': 'bandwidth', 'tbf': 'rate'}


def parse_rate_mbit(rate: str) -> Optional[Union[int, float]]:
    """
    Convert a tc rate string to megabits

    Example: "500Mbit" -> 500, "1Gbit" -> 1000, "1500Kbit" -> 1.5
    Returns None for anything that is not a plain bit rate (e.g. "unlimited").
    """
    match = _RATE.match(rate.strip())
    if not match:
        return None

    mbit = float(match.group(1)) * _RATE_UNITS[match.group(2).upper()]
    mbit = round(mbit, 6)
    return int(mbit) if mbit.is_integer() else mbit


def is_missing_device(output: str) -> bool:
    """True when tc output says the interface is not there"""
    return any(marker in output for marker in MISSING_DEVICE_MARKERS)


def _qdisc_block(tc_output: str, start: int) -> str:
    """Text of one qdisc entry: from its `qdisc` line up to the next one"""
    next_qdisc = _QDISC_LINE.search(tc_output, start + 1)
    end = next_qdisc.start() if next_qdisc else len(tc_output)
    return tc_output[start:end]


def _extract_settings(algorithm: str, block: str) -> Dict[str, Any]:
    settings: Dict[str, Any] = {}

    for key, pattern, convert in FIELD_RULES.get(algorithm, []):
        match = pattern.search(block)
        if not match:
            continue
        if convert is None:
            # number + unit captured separately
            settings[key] = ''.join(match.groups())
        else:
            settings[key] = convert(match.group(1))

    for key, pattern in FLAG_RULES.get(algorithm, []):
        if pattern.search(block):
            settings[key] = True

    rate_key = RATE_KEYS.get(algorithm)
    if rate_key and rate_key in settings:
        mbit = parse_rate_mbit(settings[rate_key])
        if mbit is not None:
            settings['bandwidth_mbit'] = mbit

    return settings


def parse_qdisc_show(tc_output: str) -> Tuple[str, Dict[str, Any]]:
    """
    Parse `tc qdisc show dev <iface>` output into (algorithm, settings)

    Example input:
    qdisc cake 8001: root refcnt 2 bandwidth 500Mbit diffserv3 triple-isolate
     nonat nowash no-ack-filter split-gso rtt 100ms raw overhead 0

    Empty output means the kernel default. Output with no recognised qdisc is
    reported as "unknown" with the raw text kept under 'raw_output'.
    """
    if not tc_output or tc_output.strip() == "":
        return DEFAULT_ALGORITHM, {}

    for match in _QDISC_LINE.finditer(tc_output):
        algorithm = KNOWN_QDISCS.get(match.group(1))
        if algorithm is None:
            continue
        block = _qdisc_block(tc_output, match.start())
        return algorithm, _extract_settings(algorithm, block)

    return UNKNOWN_ALGORITHM, {'raw_output': tc_output.strip()}


_LINK_LINE = re.compile(r'^\d+:\s+([^:\s]+):\s+<([^>]*)>', re.MULTILINE)


def parse_link_list(ip_output: str) -> List[str]:
    """
    Parse `ip -o link show` output into names of interfaces that are up

    Example input:
    2: eth0: <BROADCAST,MULTICAST,UP,LOWER_UP> mtu 1500 qdisc fq_codel state UP ...

    Loopback interfaces are skipped; "veth0@if5" is reported as "veth0".
    """
    names = []
    for match in _LINK_LINE.finditer(ip_output):
        flags = match.group(2).split(',')
        if 'LOOPBACK' in flags or 'UP' not in flags:
            continue
        name = match.group(1).split('@', 1)[0]
        if name not in names:
            names.append(name)
    return names

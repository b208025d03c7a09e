"""
Input predicates for the EC2 components.

Every check runs on plain Python values before any resource is registered.
Values that are still unresolved (pulumi.Output) are passed through, the
provider validates those at deployment time.
"""
import ipaddress
import re

import pulumi

from .errors import InputValidationError

AMI_ID_PATTERN = r"ami-[0-9a-f]{8,17}"
INSTANCE_TYPE_PATTERN = r"[a-z][a-z0-9-]*\.[a-z0-9]+"
POLICY_ARN_PATTERN = r"arn:aws[a-z-]*:iam::(aws|\d{12}):policy/.+"

VOLUME_TYPES = ("gp2", "gp3", "io1", "io2", "st1", "sc1", "standard")
PROTOCOLS = ("tcp", "udp", "icmp", "icmpv6", "-1", "all")
HEALTH_CHECK_TYPES = ("EC2", "ELB")
SPOT_ALLOCATION_STRATEGIES = (
    "lowest-price",
    "capacity-optimized",
    "capacity-optimized-prioritized",
    "price-capacity-optimized",
)

# Values accepted by CloudWatch Logs for retention_in_days, 0 means never expire
LOG_RETENTION_DAYS = (
    0, 1, 3, 5, 7, 14, 30, 60, 90, 120, 150, 180, 365, 400, 545, 731,
    1096, 1827, 2192, 2557, 2922, 3288, 3653,
)

RULE_SOURCES = ("cidr_blocks", "ipv6_cidr_blocks", "source_security_group_id", "self")


def is_unknown(value):
    return isinstance(value, pulumi.Output)


def one_of(name, value, allowed):
    if is_unknown(value):
        return value
    if value not in allowed:
        raise InputValidationError(name, f"{value!r} is not one of {', '.join(map(str, allowed))}")
    return value


def in_range(name, value, low, high):
    if is_unknown(value) or is_unknown(low) or is_unknown(high):
        return value
    # bool is an int subclass, reject it explicitly
    if isinstance(value, bool) or not isinstance(value, int):
        raise InputValidationError(name, f"{value!r} is not an integer")
    if value < low or value > high:
        raise InputValidationError(name, f"{value} is outside {low}..{high}")
    return value


def matches(name, value, pattern):
    if is_unknown(value):
        return value
    if not isinstance(value, str) or not re.fullmatch(pattern, value):
        raise InputValidationError(name, f"{value!r} does not match {pattern}")
    return value


def cidr(name, value):
    if is_unknown(value):
        return value
    try:
        ipaddress.ip_network(value, strict=True)
    except (TypeError, ValueError) as e:
        raise InputValidationError(name, f"{value!r} is not a CIDR block ({e})") from e
    return value


def ip_address(name, value):
    if is_unknown(value):
        return value
    try:
        ipaddress.ip_address(value)
    except (TypeError, ValueError) as e:
        raise InputValidationError(name, f"{value!r} is not an IP address") from e
    return value


def ami_id(name, value):
    return matches(name, value, AMI_ID_PATTERN)


def instance_type(name, value):
    return matches(name, value, INSTANCE_TYPE_PATTERN)


def policy_arn(name, value):
    return matches(name, value, POLICY_ARN_PATTERN)


def log_retention(name, value):
    in_range(name, value, 0, 3653)
    return one_of(name, value, LOG_RETENTION_DAYS)


def volume(name, spec):
    """Check an EBS volume spec dict. Returns the spec unchanged."""
    if is_unknown(spec):
        return spec
    volume_type = spec.get("volume_type", "gp3")
    one_of(f"{name}.volume_type", volume_type, VOLUME_TYPES)
    if "volume_size" in spec:
        in_range(f"{name}.volume_size", spec["volume_size"], 1, 16384)

    iops = spec.get("iops")
    if iops is not None:
        if volume_type == "gp3":
            in_range(f"{name}.iops", iops, 3000, 16000)
        elif volume_type in ("io1", "io2"):
            in_range(f"{name}.iops", iops, 100, 256000)
        else:
            raise InputValidationError(f"{name}.iops", f"not supported for volume type {volume_type}")
    elif volume_type in ("io1", "io2"):
        raise InputValidationError(f"{name}.iops", f"required for volume type {volume_type}")

    throughput = spec.get("throughput")
    if throughput is not None:
        if volume_type != "gp3":
            raise InputValidationError(f"{name}.throughput", "only supported for gp3 volumes")
        in_range(f"{name}.throughput", throughput, 125, 1000)
    return spec


def rule(name, spec):
    """Check a security group rule dict. Returns the spec unchanged."""
    protocol = str(spec.get("protocol", "tcp"))
    one_of(f"{name}.protocol", protocol, PROTOCOLS)
    from_port = spec.get("from_port", 0)
    to_port = spec.get("to_port", from_port)

    if protocol in ("-1", "all"):
        if any(not is_unknown(port) and port != 0 for port in (from_port, to_port)):
            raise InputValidationError(f"{name}.from_port", "all-protocol rules must use ports 0 to 0")
    elif protocol in ("icmp", "icmpv6"):
        # for ICMP the ports carry type and code
        in_range(f"{name}.from_port", from_port, -1, 255)
        in_range(f"{name}.to_port", to_port, -1, 255)
    else:
        in_range(f"{name}.from_port", from_port, 0, 65535)
        in_range(f"{name}.to_port", to_port, 0, 65535)
        if not is_unknown(from_port) and not is_unknown(to_port) and from_port > to_port:
            raise InputValidationError(f"{name}.from_port", f"{from_port} is greater than to_port {to_port}")

    sources = [key for key in RULE_SOURCES if spec.get(key)]
    if len(sources) != 1:
        raise InputValidationError(name, f"exactly one of {', '.join(RULE_SOURCES)} is required")
    for block in spec.get("cidr_blocks") or []:
        cidr(f"{name}.cidr_blocks", block)
    for block in spec.get("ipv6_cidr_blocks") or []:
        cidr(f"{name}.ipv6_cidr_blocks", block)
    return spec


def capacity(min_size, max_size, desired_capacity=None):
    """Check 0 <= min <= desired <= max and max >= 1."""
    in_range("min_size", min_size, 0, 10000)
    in_range("max_size", max_size, 1, 10000)
    if is_unknown(min_size) or is_unknown(max_size):
        return min_size, max_size, desired_capacity
    if min_size > max_size:
        raise InputValidationError("min_size", f"{min_size} is greater than max_size {max_size}")
    if desired_capacity is not None:
        in_range("desired_capacity", desired_capacity, min_size, max_size)
    return min_size, max_size, desired_capacity


def percentage(name, value, low=1, high=100):
    """Inclusive range check for numbers that may be fractional."""
    if is_unknown(value):
        return value
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InputValidationError(name, f"{value!r} is not a number")
    if value < low or value > high:
        raise InputValidationError(name, f"{value} is outside {low}..{high}")
    return value

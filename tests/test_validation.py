import pulumi
import pytest

from ec2_modules import InputValidationError, validation


def test_error_is_reported_without_traceback():
    assert issubclass(InputValidationError, pulumi.RunError)
    error = InputValidationError("min_size", "is negative")
    assert str(error) == "invalid value for 'min_size': is negative"


def test_one_of():
    assert validation.one_of("health_check_type", "ELB", validation.HEALTH_CHECK_TYPES) == "ELB"
    with pytest.raises(InputValidationError):
        validation.one_of("health_check_type", "HTTP", validation.HEALTH_CHECK_TYPES)


def test_in_range_is_inclusive_and_integer_only():
    assert validation.in_range("port", 0, 0, 65535) == 0
    assert validation.in_range("port", 65535, 0, 65535) == 65535
    for bad in (-1, 65536, 1.5, "22", True):
        with pytest.raises(InputValidationError):
            validation.in_range("port", bad, 0, 65535)


@pulumi.runtime.test
def test_outputs_pass_through_unchecked():
    value = pulumi.Output.from_input("anything")
    assert validation.one_of("x", value, ("a",)) is value
    assert validation.in_range("x", value, 0, 1) is value
    assert validation.matches("x", value, "a") is value
    assert validation.cidr("x", value) is value


@pytest.mark.parametrize("value", ["ami-12345678", "ami-0123456789abcdef0"])
def test_ami_id_accepts(value):
    assert validation.ami_id("ami_id", value) == value


@pytest.mark.parametrize("value", ["ami-1234", "ami-XYZ45678", "i-12345678", "", None])
def test_ami_id_rejects(value):
    with pytest.raises(InputValidationError):
        validation.ami_id("ami_id", value)


@pytest.mark.parametrize("value,ok", [
    ("t3.micro", True),
    ("m7g.2xlarge", True),
    ("u-6tb1.metal", True),
    ("t3", False),
    ("T3.micro", False),
])
def test_instance_type(value, ok):
    if ok:
        validation.instance_type("instance_type", value)
    else:
        with pytest.raises(InputValidationError):
            validation.instance_type("instance_type", value)


def test_cidr():
    validation.cidr("cidr_blocks", "10.0.1.0/24")
    validation.cidr("cidr_blocks", "::/0")
    with pytest.raises(InputValidationError):
        validation.cidr("cidr_blocks", "10.0.1.1/24")
    with pytest.raises(InputValidationError):
        validation.cidr("cidr_blocks", "not-a-cidr")


def test_policy_arn():
    validation.policy_arn("arn", "arn:aws:iam::aws:policy/AmazonSSMManagedInstanceCore")
    validation.policy_arn("arn", "arn:aws-us-gov:iam::123456789012:policy/team/Custom")
    with pytest.raises(InputValidationError):
        validation.policy_arn("arn", "AmazonSSMManagedInstanceCore")


def test_log_retention():
    assert validation.log_retention("log_retention_days", 30) == 30
    with pytest.raises(InputValidationError):
        validation.log_retention("log_retention_days", 31)


class TestVolume:

    def test_defaults_to_gp3(self):
        validation.volume("root_volume", {"volume_size": 8})

    def test_rejects_unknown_type_and_size(self):
        with pytest.raises(InputValidationError):
            validation.volume("root_volume", {"volume_type": "gp4"})
        with pytest.raises(InputValidationError):
            validation.volume("root_volume", {"volume_size": 0})
        with pytest.raises(InputValidationError):
            validation.volume("root_volume", {"volume_size": 16385})

    def test_iops_rules(self):
        validation.volume("v", {"volume_type": "gp3", "iops": 3000})
        validation.volume("v", {"volume_type": "io2", "iops": 64000})
        with pytest.raises(InputValidationError):
            validation.volume("v", {"volume_type": "io1"})
        with pytest.raises(InputValidationError):
            validation.volume("v", {"volume_type": "gp2", "iops": 3000})
        with pytest.raises(InputValidationError):
            validation.volume("v", {"volume_type": "gp3", "iops": 20000})

    def test_throughput_only_on_gp3(self):
        validation.volume("v", {"volume_type": "gp3", "throughput": 250})
        with pytest.raises(InputValidationError) as excinfo:
            validation.volume("v", {"volume_type": "gp2", "throughput": 250})
        assert excinfo.value.argument == "v.throughput"


class TestRule:

    def test_ssh_rule(self):
        validation.rule("r", {"protocol": "tcp", "from_port": 22, "to_port": 22, "cidr_blocks": ["0.0.0.0/0"]})

    def test_all_protocol_needs_zero_ports(self):
        validation.rule("r", {"protocol": "-1", "from_port": 0, "to_port": 0, "cidr_blocks": ["0.0.0.0/0"]})
        with pytest.raises(InputValidationError):
            validation.rule("r", {"protocol": "-1", "from_port": 0, "to_port": 65535, "cidr_blocks": ["0.0.0.0/0"]})

    def test_icmp_ports_are_type_and_code(self):
        validation.rule("r", {"protocol": "icmp", "from_port": -1, "to_port": -1, "cidr_blocks": ["10.0.0.0/8"]})

    def test_port_order(self):
        with pytest.raises(InputValidationError) as excinfo:
            validation.rule("r", {"protocol": "tcp", "from_port": 443, "to_port": 80, "cidr_blocks": ["10.0.0.0/8"]})
        assert excinfo.value.argument == "r.from_port"

    def test_exactly_one_source(self):
        with pytest.raises(InputValidationError):
            validation.rule("r", {"protocol": "tcp", "from_port": 80})
        with pytest.raises(InputValidationError):
            validation.rule("r", {
                "protocol": "tcp",
                "from_port": 80,
                "cidr_blocks": ["10.0.0.0/8"],
                "source_security_group_id": "sg-12345678",
            })

    def test_unknown_protocol(self):
        with pytest.raises(InputValidationError):
            validation.rule("r", {"protocol": "sctp", "from_port": 80, "cidr_blocks": ["10.0.0.0/8"]})


def test_capacity():
    validation.capacity(0, 1)
    validation.capacity(1, 3, 2)
    with pytest.raises(InputValidationError):
        validation.capacity(3, 1)
    with pytest.raises(InputValidationError):
        validation.capacity(1, 3, 4)
    with pytest.raises(InputValidationError):
        validation.capacity(0, 0)


def test_rule_accepts_output_ports():
    port = pulumi.Output.from_input(0)
    validation.rule("r", {"protocol": "-1", "from_port": port, "to_port": port, "cidr_blocks": ["0.0.0.0/0"]})
    validation.rule("r", {"protocol": "tcp", "from_port": pulumi.Output.from_input(443), "to_port": 443,
                          "cidr_blocks": ["0.0.0.0/0"]})
    with pytest.raises(InputValidationError):
        validation.rule("r", {"protocol": "-1", "from_port": port, "to_port": 80, "cidr_blocks": ["0.0.0.0/0"]})


def test_capacity_accepts_outputs():
    size = pulumi.Output.from_input(3)
    assert validation.capacity(1, size, 2) == (1, size, 2)
    assert validation.capacity(size, 5)[0] is size
    desired = pulumi.Output.from_input(2)
    assert validation.capacity(1, 3, desired)[2] is desired
    assert validation.in_range("on_demand_base_capacity", 2, 0, size) == 2


def test_percentage():
    assert validation.percentage("cpu_target", 62.5) == 62.5
    value = pulumi.Output.from_input(60)
    assert validation.percentage("cpu_target", value) is value
    for bad in (0, 100.5, "60", True):
        with pytest.raises(InputValidationError):
            validation.percentage("cpu_target", bad)

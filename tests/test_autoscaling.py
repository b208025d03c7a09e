import pulumi
import pytest

from ec2_modules import AutoscalingGroup, InputValidationError, ResourceName

GROUP_TYPE = "aws:autoscaling/group:Group"

NAME = ResourceName(purpose="web", environment="staging")
SUBNETS = ["subnet-a", "subnet-b"]


@pulumi.runtime.test
def test_creates_launch_template_and_propagates_tags(mocks):
    asg = AutoscalingGroup(NAME,
        subnet_ids=SUBNETS,
        launch_template_args={"image_id": "ami-12345678", "instance_type": "t3.small"},
        min_size=1,
        max_size=3,
        desired_capacity=2,
        tags={"Owner": "JohnDoe"},
        )

    assert asg.launch_template is not None
    assert asg.spot_enabled is False
    assert asg.scaling_policy is None

    def check(_):
        inputs = mocks.inputs("alsweb01-asg", GROUP_TYPE)
        assert inputs["vpcZoneIdentifiers"] == SUBNETS
        assert inputs["launchTemplate"] == {"id": "alsweb01-lt_id", "version": "$Latest"}
        assert "mixedInstancesPolicy" not in inputs
        assert inputs["minSize"] == 1
        assert inputs["maxSize"] == 3
        assert inputs["desiredCapacity"] == 2
        assert inputs["healthCheckType"] == "EC2"
        tags = {tag["key"]: tag for tag in inputs["tags"]}
        assert tags["Name"]["value"] == "alsweb01"
        assert tags["Owner"]["value"] == "JohnDoe"
        assert all(tag["propagateAtLaunch"] is True for tag in tags.values())
        lt = mocks.inputs("alsweb01-lt", "aws:ec2/launchTemplate:LaunchTemplate")
        assert lt["instanceType"] == "t3.small"
        assert lt["tags"]["Owner"] == "JohnDoe"

    return asg.arn.apply(check)


@pulumi.runtime.test
def test_existing_launch_template(mocks):
    asg = AutoscalingGroup("workers", subnet_ids=SUBNETS, launch_template_id="lt-0abc", launch_template_version="7")

    assert asg.launch_template is None

    def check(_):
        inputs = mocks.inputs("workers-asg", GROUP_TYPE)
        assert inputs["launchTemplate"] == {"id": "lt-0abc", "version": "7"}
        assert mocks.of_type("aws:ec2/launchTemplate:LaunchTemplate") == {}

    return asg.arn.apply(check)


@pulumi.runtime.test
def test_spot_uses_mixed_instances_policy(mocks):
    asg = AutoscalingGroup("workers",
        subnet_ids=SUBNETS,
        launch_template_id="lt-0abc",
        spot=True,
        on_demand_base_capacity=1,
        on_demand_percentage=25,
        instance_types=["t3.small", "t3a.small"],
        max_size=4,
        )

    def check(_):
        inputs = mocks.inputs("workers-asg", GROUP_TYPE)
        assert "launchTemplate" not in inputs
        policy = inputs["mixedInstancesPolicy"]
        distribution = policy["instancesDistribution"]
        assert distribution["onDemandBaseCapacity"] == 1
        assert distribution["onDemandPercentageAboveBaseCapacity"] == 25
        assert distribution["spotAllocationStrategy"] == "price-capacity-optimized"
        spec = policy["launchTemplate"]["launchTemplateSpecification"]
        assert spec == {"launchTemplateId": "lt-0abc", "version": "$Latest"}
        overrides = [o["instanceType"] for o in policy["launchTemplate"]["overrides"]]
        assert overrides == ["t3.small", "t3a.small"]

    return asg.arn.apply(check)


@pulumi.runtime.test
def test_cpu_target_tracking(mocks):
    asg = AutoscalingGroup("workers", subnet_ids=SUBNETS, launch_template_id="lt-0abc", cpu_target=60)

    def check(_):
        policy = mocks.inputs("workers-cpu", "aws:autoscaling/policy:Policy")
        assert policy["policyType"] == "TargetTrackingScaling"
        assert policy["autoscalingGroupName"] == "workers-asg"
        configuration = policy["targetTrackingConfiguration"]
        assert configuration["targetValue"] == 60.0
        assert configuration["predefinedMetricSpecification"]["predefinedMetricType"] == "ASGAverageCPUUtilization"

    return asg.scaling_policy.id.apply(check)


@pytest.mark.parametrize("kwargs,argument", [
    ({"min_size": 4, "max_size": 3}, "min_size"),
    ({"min_size": 1, "max_size": 3, "desired_capacity": 5}, "desired_capacity"),
    ({"health_check_type": "HTTP"}, "health_check_type"),
    ({"termination_policies": ["Random"]}, "termination_policies"),
    ({"instance_types": ["t3.small"]}, "instance_types"),
    ({"spot": True, "on_demand_percentage": 150}, "on_demand_percentage"),
    ({"spot": True, "spot_allocation_strategy": "cheapest"}, "spot_allocation_strategy"),
    ({"cpu_target": 0}, "cpu_target"),
    ({"cpu_target": 100.5}, "cpu_target"),
    ({"launch_template_args": {"instance_type": "t3.small"}}, "launch_template_args"),
])
def test_invalid_arguments(mocks, kwargs, argument):
    with pytest.raises(InputValidationError) as excinfo:
        AutoscalingGroup("workers", subnet_ids=SUBNETS, launch_template_id="lt-0abc", **kwargs)
    assert excinfo.value.argument == argument
    assert mocks.resources == {}


@pulumi.runtime.test
def test_output_sizes_and_cpu_target(mocks):
    asg = AutoscalingGroup("workers",
        subnet_ids=SUBNETS,
        launch_template_id="lt-0abc",
        max_size=pulumi.Output.from_input(4),
        spot=True,
        on_demand_base_capacity=1,
        cpu_target=pulumi.Output.from_input(60),
        )

    def check(_):
        assert mocks.inputs("workers-asg", GROUP_TYPE)["maxSize"] == 4
        policy = mocks.inputs("workers-cpu", "aws:autoscaling/policy:Policy")
        assert policy["targetTrackingConfiguration"]["targetValue"] == 60.0

    return asg.scaling_policy.id.apply(check)


@pulumi.runtime.test
def test_launch_template_args_with_empty_tags(mocks):
    asg = AutoscalingGroup(NAME,
        subnet_ids=SUBNETS,
        launch_template_args={"image_id": "ami-12345678", "tags": None},
        )

    def check(_):
        lt = mocks.inputs("alsweb01-lt", "aws:ec2/launchTemplate:LaunchTemplate")
        assert lt["tags"]["Name"] == "alsweb01"

    return asg.arn.apply(check)

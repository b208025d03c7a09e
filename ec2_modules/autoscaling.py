import pulumi
import pulumi_aws as aws

from . import naming, validation
from .errors import InputValidationError
from .launch_template import LaunchTemplate

TERMINATION_POLICIES = (
    "Default",
    "OldestInstance",
    "NewestInstance",
    "OldestLaunchConfiguration",
    "OldestLaunchTemplate",
    "ClosestToNextInstanceHour",
    "AllocationStrategy",
)


# Convert a tags dictionary to a list of dictionaries with propagate_at_launch key
def asg_tags(tags):
    return [
        aws.autoscaling.GroupTagArgs(key=k, value=v, propagate_at_launch=True)
        for k, v in tags.items()
    ]


class AutoscalingGroup(pulumi.ComponentResource):
    """Autoscaling group backed by a launch template.

    Pass launch_template_id to reuse an existing template, otherwise one is
    created from launch_template_args (the keyword arguments of
    LaunchTemplate). With spot enabled the template is referenced from a
    mixed instances policy instead of directly.
    """

    def __init__(self, name, subnet_ids, launch_template_id=None, launch_template_version="$Latest",
                 launch_template_args=None, min_size=1, max_size=3, desired_capacity=None,
                 health_check_type="EC2", health_check_grace_period=300, target_group_arns=None,
                 spot=False, on_demand_base_capacity=0, on_demand_percentage=0,
                 spot_allocation_strategy="price-capacity-optimized", instance_types=None,
                 cpu_target=None, termination_policies=None, tags=None, opts=None):
        resource_name = name
        name, tags = naming.resolve(name, extra_tags=tags)

        validation.capacity(min_size, max_size, desired_capacity)
        validation.one_of("health_check_type", health_check_type, validation.HEALTH_CHECK_TYPES)
        validation.in_range("health_check_grace_period", health_check_grace_period, 0, 7200)
        for policy in termination_policies or []:
            validation.one_of("termination_policies", policy, TERMINATION_POLICIES)
        if launch_template_id is not None and launch_template_args:
            raise InputValidationError("launch_template_args", "cannot be combined with launch_template_id")
        if spot:
            validation.in_range("on_demand_base_capacity", on_demand_base_capacity, 0, max_size)
            validation.in_range("on_demand_percentage", on_demand_percentage, 0, 100)
            validation.one_of("spot_allocation_strategy", spot_allocation_strategy,
                              validation.SPOT_ALLOCATION_STRATEGIES)
            for instance_type in instance_types or []:
                validation.instance_type("instance_types", instance_type)
        elif instance_types:
            raise InputValidationError("instance_types", "overrides are only used with spot")
        if cpu_target is not None:
            validation.percentage("cpu_target", cpu_target)

        super().__init__("ec2modules:compute:AutoscalingGroup", name, None, opts)
        if health_check_type == "ELB" and not target_group_arns:
            pulumi.log.warn(f"{name}: ELB health checks without target groups fall back to EC2 status", resource=self)

        child_opts = pulumi.ResourceOptions(parent=self)

        self.launch_template = None
        if launch_template_id is None:
            template_args = dict(launch_template_args or {})
            template_args["tags"] = dict(tags, **(template_args.get("tags") or {}))
            self.launch_template = LaunchTemplate(resource_name,
                opts=child_opts,
                **template_args,
                )
            launch_template_id = self.launch_template.id

        launch_template = None
        mixed_instances_policy = None
        if spot:
            pulumi.log.debug(f"{name}: referencing launch template from a mixed instances policy", resource=self)
            mixed_instances_policy = aws.autoscaling.GroupMixedInstancesPolicyArgs(
                instances_distribution=aws.autoscaling.GroupMixedInstancesPolicyInstancesDistributionArgs(
                    on_demand_base_capacity=on_demand_base_capacity,
                    on_demand_percentage_above_base_capacity=on_demand_percentage,
                    spot_allocation_strategy=spot_allocation_strategy,
                ),
                launch_template=aws.autoscaling.GroupMixedInstancesPolicyLaunchTemplateArgs(
                    launch_template_specification=aws.autoscaling.GroupMixedInstancesPolicyLaunchTemplateLaunchTemplateSpecificationArgs(
                        launch_template_id=launch_template_id,
                        version=launch_template_version,
                    ),
                    overrides=[
                        aws.autoscaling.GroupMixedInstancesPolicyLaunchTemplateOverrideArgs(instance_type=t)
                        for t in instance_types or []
                    ] or None,
                ),
            )
        else:
            launch_template = aws.autoscaling.GroupLaunchTemplateArgs(
                id=launch_template_id,
                version=launch_template_version,
            )

        # Auto Scaling Group
        self.group = aws.autoscaling.Group(naming.suffixed(name, "asg"),
            vpc_zone_identifiers=subnet_ids,
            launch_template=launch_template,
            mixed_instances_policy=mixed_instances_policy,
            min_size=min_size,
            max_size=max_size,
            desired_capacity=desired_capacity,
            health_check_type=health_check_type,
            health_check_grace_period=health_check_grace_period,
            target_group_arns=target_group_arns,
            termination_policies=termination_policies,
            tags=asg_tags(tags),
            opts=child_opts,
        )

        self.scaling_policy = None
        if cpu_target is not None:
            # Keep average CPU utilisation of the group at the target
            self.scaling_policy = aws.autoscaling.Policy(naming.suffixed(name, "cpu"),
                autoscaling_group_name=self.group.name,
                policy_type="TargetTrackingScaling",
                target_tracking_configuration=aws.autoscaling.PolicyTargetTrackingConfigurationArgs(
                    predefined_metric_specification=aws.autoscaling.PolicyTargetTrackingConfigurationPredefinedMetricSpecificationArgs(
                        predefined_metric_type="ASGAverageCPUUtilization",
                    ),
                    target_value=pulumi.Output.from_input(cpu_target).apply(float),
                ),
                opts=child_opts,
            )

        self.name = self.group.name
        self.arn = self.group.arn
        self.launch_template_id = launch_template_id
        self.min_size = min_size
        self.max_size = max_size
        self.desired_capacity = desired_capacity
        self.spot_enabled = spot

        self.register_outputs({
            "name": self.name,
            "arn": self.arn,
            "launch_template_id": self.launch_template_id,
            "min_size": min_size,
            "max_size": max_size,
            "desired_capacity": desired_capacity,
            "spot_enabled": spot,
        })

import pulumi
import pulumi_aws as aws
import variables

from ec2_modules import (
    AutoscalingGroup,
    Ec2Instance,
    InputValidationError,
    InstanceRole,
    ResourceName,
    SecurityGroup,
)
from ec2_modules.validation import one_of

one_of("deployment", variables.deployment, ("instance", "asg", "both"))
if not variables.vpc_id:
    raise InputValidationError("vpcId", "set the vpcId config value or the VPC_ID environment variable")

# Configure the AWS provider for the configured region
provider = aws.Provider("aws", region=variables.aws_region)
opts = pulumi.ResourceOptions(provider=provider)
invoke_opts = pulumi.InvokeOptions(provider=provider)

name = ResourceName.from_config(variables.naming)

# Use the existing VPC
vpc = aws.ec2.get_vpc(id=variables.vpc_id, opts=invoke_opts)

# Retrieve subnet IDs for the given VPC
subnets = aws.ec2.get_subnets(filters=[
    aws.ec2.GetSubnetsFilterArgs(name="vpc-id", values=[vpc.id]),
], opts=invoke_opts).ids
if not subnets:
    raise InputValidationError("vpcId", f"VPC {vpc.id} has no subnets")

subnet_details = [aws.ec2.get_subnet(id=subnet_id, opts=invoke_opts) for subnet_id in subnets]

pulumi.export("vpc_id", vpc.id)
pulumi.export("subnet_cidr_blocks", [subnet.cidr_block for subnet in subnet_details])
pulumi.export("availability_zones", sorted({subnet.availability_zone for subnet in subnet_details}))

if variables.deployment in ("instance", "both"):
    # instanceConfig entries override the top-level settings
    instance_args = {
        "vpc_id": vpc.id,
        "subnet_id": subnets[0],
        "instance_type": variables.instance_type,
        "ingress_rules": variables.ingress_rules,
        "user_data": variables.user_data_script,
        "region": variables.aws_region,
        "tags": variables.default_tags,
    }
    instance_args.update(variables.instance_config)

    instance = Ec2Instance(name, opts=opts, **instance_args)

    pulumi.export("instance_id", instance.instance_id)
    pulumi.export("public_ip", instance.public_ip)
    pulumi.export("private_ip", instance.private_ip)
    pulumi.export("ami_id", instance.ami_id)
    pulumi.export("instance_type", instance.instance_type)
    pulumi.export("tags", instance.tags)
    pulumi.export("root_volume_size", instance.root_volume_size)
    pulumi.export("root_volume_type", instance.root_volume_type)
    pulumi.export("detailed_monitoring", instance.detailed_monitoring)
    pulumi.export("termination_protection", instance.termination_protection)
    pulumi.export("auto_recovery_enabled", instance.auto_recovery_enabled)
    pulumi.export("spot_instance_enabled", instance.spot_instance_enabled)
    pulumi.export("cloudwatch_logs_forwarding", instance.cloudwatch_logs_forwarding)
    pulumi.export("cloudwatch_log_group_retention_days", instance.log_retention_days)
    pulumi.export("iam_role_name", instance.iam_role_name)
    pulumi.export("iam_policies", instance.iam_policies)
    pulumi.export("security_group_ingress_rules", instance.security_group_ingress_rules)
    pulumi.export("security_group_egress_rules", instance.security_group_egress_rules)

if variables.deployment in ("asg", "both"):
    asg_name = ResourceName.from_config(dict(variables.naming, index=name.index + 1)) \
        if variables.deployment == "both" else name

    # Instance Security Group
    asg_security_group = SecurityGroup(asg_name.child("sg"),
        vpc_id=vpc.id,
        description="Allow HTTP",
        ingress_rules=variables.ingress_rules,
        tags=asg_name.tags(variables.default_tags),
        opts=opts,
    )

    # IAM Role and Instance Profile for the group's instances
    asg_role = InstanceRole(asg_name,
        tags=variables.default_tags,
        opts=opts,
    )

    asg = AutoscalingGroup(asg_name,
        subnet_ids=subnets,
        launch_template_args={
            "instance_type": variables.instance_type,
            "iam_instance_profile_name": asg_role.instance_profile_name,
            "user_data": variables.user_data_script,
            "security_group_ids": [asg_security_group.id],
            "associate_public_ip_address": True,
        },
        min_size=variables.ec2_config["min_size"],
        max_size=variables.ec2_config["max_size"],
        desired_capacity=variables.ec2_config.get("desired_capacity"),
        spot=variables.spot,
        instance_types=[variables.instance_type] if variables.spot else None,
        cpu_target=variables.cpu_target,
        tags=variables.default_tags,
        opts=opts,
    )

    pulumi.export("asg_name", asg.name)
    pulumi.export("asg_arn", asg.arn)
    pulumi.export("launch_template_id", asg.launch_template_id)
    pulumi.export("spot_fallback", variables.spot)

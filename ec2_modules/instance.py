import pulumi
import pulumi_aws as aws

from . import ami, naming, storage, validation
from .errors import InputValidationError
from .iam import InstanceRole
from .launch_template import LaunchTemplate
from .security_group import SecurityGroup

DEFAULT_INSTANCE_TYPE = "t3.micro"
DEFAULT_LOG_RETENTION_DAYS = 30


def recover_action_arn(region):
    return f"arn:aws:automate:{region}:ec2:recover"


def _launch_template_args(launch_template):
    if isinstance(launch_template, LaunchTemplate):
        return aws.ec2.InstanceLaunchTemplateArgs(id=launch_template.id, version="$Latest")
    if not isinstance(launch_template, dict) or not (launch_template.get("id") or launch_template.get("name")):
        raise InputValidationError("launch_template", "must be a LaunchTemplate or a dict with an id or name")
    return aws.ec2.InstanceLaunchTemplateArgs(
        id=launch_template.get("id"),
        name=launch_template.get("name"),
        version=launch_template.get("version", "$Latest"),
    )


class Ec2Instance(pulumi.ComponentResource):
    """A single EC2 instance with its optional security group, IAM role,
    recovery alarm and log group.

    The AMI and instance type come either from a launch template (and are
    only set on the instance when given explicitly, as overrides) or from
    ami_id/instance_type, falling back to the latest Amazon image for the
    operating system and t3.micro.

    Spot instances cannot have termination protection or auto recovery.
    """

    def __init__(self, name, vpc_id=None, subnet_id=None, ami_id=None, instance_type=None,
                 launch_template=None, security_group_ids=None, ingress_rules=None,
                 egress_rules=None, create_iam_role=True, iam_instance_profile=None,
                 managed_policy_arns=None, inline_policies=None, key_name=None,
                 user_data=None, associate_public_ip_address=None, private_ip=None,
                 root_volume=None, ebs_volumes=None, detailed_monitoring=False,
                 termination_protection=False, require_imdsv2=True, spot=False,
                 spot_max_price=None, auto_recovery=False, cloudwatch_logs=False,
                 log_retention_days=DEFAULT_LOG_RETENTION_DAYS, region=None,
                 os="linux", architecture="x86_64", tags=None, opts=None):
        os = name.os if isinstance(name, naming.ResourceName) else os
        name, tags = naming.resolve(name, extra_tags=tags)

        if spot and termination_protection:
            raise InputValidationError("termination_protection", "is not supported for spot instances")
        if spot and auto_recovery:
            raise InputValidationError("auto_recovery", "is not supported for spot instances")
        if auto_recovery:
            region = region or aws.config.region
            if not region:
                raise InputValidationError("region", "is required for auto_recovery")
        if ingress_rules is not None and vpc_id is None:
            raise InputValidationError("vpc_id", "is required to create a security group")
        if private_ip is not None:
            validation.ip_address("private_ip", private_ip)
        if cloudwatch_logs:
            validation.log_retention("log_retention_days", log_retention_days)

        root_device = storage.root_device_name(os, root_volume)
        ebs_specs = storage.ebs_volume_specs(ebs_volumes, root_device)

        # launch template sourced instances only carry explicit overrides
        launch_template_args = None
        if launch_template is not None:
            launch_template_args = _launch_template_args(launch_template)
            if ami_id is not None:
                validation.ami_id("ami_id", ami_id)
            if instance_type is not None:
                validation.instance_type("instance_type", instance_type)
            root_spec = storage.root_volume_spec(root_volume) if root_volume is not None else None
        else:
            instance_type = validation.instance_type("instance_type", instance_type or DEFAULT_INSTANCE_TYPE)
            root_spec = storage.root_volume_spec(root_volume)
            if ami_id is not None:
                validation.ami_id("ami_id", ami_id)
            else:
                ami.check_platform(os, architecture)

        super().__init__("ec2modules:compute:Instance", name, None, opts)
        child_opts = pulumi.ResourceOptions(parent=self)

        if launch_template is not None:
            pulumi.log.debug(f"{name}: using launch template for image and instance type", resource=self)
        elif ami_id is None:
            ami_id = ami.lookup_ami(os, architecture, parent=self)

        security_group_ids = list(security_group_ids or [])
        self.security_group = None
        if ingress_rules is not None:
            self.security_group = SecurityGroup(naming.suffixed(name, "sg"),
                vpc_id=vpc_id,
                description=f"Security group for {name}",
                ingress_rules=ingress_rules,
                egress_rules=egress_rules,
                tags=tags,
                opts=child_opts,
                )
            security_group_ids.insert(0, self.security_group.id)

        self.role = None
        instance_profile = iam_instance_profile
        if iam_instance_profile is not None:
            if cloudwatch_logs:
                pulumi.log.warn(f"{name}: existing instance profile must allow the CloudWatch agent", resource=self)
        elif create_iam_role:
            self.role = InstanceRole(name,
                managed_policy_arns=managed_policy_arns,
                inline_policies=inline_policies,
                enable_cloudwatch_agent=cloudwatch_logs,
                tags=tags,
                opts=child_opts,
                )
            instance_profile = self.role.instance_profile_name

        self.log_group = None
        if cloudwatch_logs:
            self.log_group = aws.cloudwatch.LogGroup(naming.suffixed(name, "logs"),
                name=f"/ec2/{name}",
                retention_in_days=log_retention_days,
                opts=child_opts,
                tags=tags,
                )

        instance_market_options = None
        if spot:
            instance_market_options = aws.ec2.InstanceInstanceMarketOptionsArgs(
                market_type="spot",
                spot_options=aws.ec2.InstanceInstanceMarketOptionsSpotOptionsArgs(
                    max_price=spot_max_price,
                    instance_interruption_behavior="terminate",
                    spot_instance_type="one-time",
                ),
            )

        # EC2 Instance
        self.instance = aws.ec2.Instance(name,
            ami=ami_id,
            instance_type=instance_type,
            launch_template=launch_template_args,
            subnet_id=subnet_id,
            vpc_security_group_ids=security_group_ids or None,
            iam_instance_profile=instance_profile,
            key_name=key_name,
            user_data=user_data,
            associate_public_ip_address=associate_public_ip_address,
            private_ip=private_ip,
            root_block_device=storage.instance_root_block_device(root_spec, tags) if root_spec else None,
            ebs_block_devices=storage.instance_ebs_block_devices(ebs_specs, tags) or None,
            monitoring=detailed_monitoring,
            disable_api_termination=termination_protection,
            metadata_options=aws.ec2.InstanceMetadataOptionsArgs(
                http_endpoint="enabled",
                http_tokens="required" if require_imdsv2 else "optional",
            ),
            instance_market_options=instance_market_options,
            opts=child_opts,
            tags=tags,
            )

        self.recovery_alarm = None
        if auto_recovery:
            # Recover the instance onto healthy hardware when the system check fails
            self.recovery_alarm = aws.cloudwatch.MetricAlarm(naming.suffixed(name, "recover"),
                alarm_description=f"Recover {name} when the system status check fails",
                namespace="AWS/EC2",
                metric_name="StatusCheckFailed_System",
                statistic="Maximum",
                period=60,
                evaluation_periods=2,
                threshold=1,
                comparison_operator="GreaterThanOrEqualToThreshold",
                dimensions={"InstanceId": self.instance.id},
                alarm_actions=[recover_action_arn(region)],
                opts=child_opts,
                tags=tags,
                )

        self.instance_id = self.instance.id
        self.public_ip = self.instance.public_ip
        self.private_ip = self.instance.private_ip
        self.ami_id = self.instance.ami
        self.instance_type = self.instance.instance_type
        self.tags = tags
        self.root_volume_size = root_spec["volume_size"] if root_spec else None
        self.root_volume_type = root_spec["volume_type"] if root_spec else None
        self.detailed_monitoring = detailed_monitoring
        self.termination_protection = termination_protection
        self.auto_recovery_enabled = auto_recovery
        self.spot_instance_enabled = spot
        self.cloudwatch_logs_forwarding = cloudwatch_logs
        self.log_retention_days = log_retention_days if cloudwatch_logs else None
        self.iam_role_name = self.role.role_name if self.role else None
        self.iam_policies = self.role.policy_names if self.role else []
        self.security_group_ingress_rules = self.security_group.ingress_rules if self.security_group else []
        self.security_group_egress_rules = self.security_group.egress_rules if self.security_group else []

        self.register_outputs({
            "instance_id": self.instance_id,
            "public_ip": self.public_ip,
            "private_ip": self.private_ip,
            "ami_id": self.ami_id,
            "instance_type": self.instance_type,
            "tags": self.tags,
            "root_volume_size": self.root_volume_size,
            "root_volume_type": self.root_volume_type,
            "detailed_monitoring": self.detailed_monitoring,
            "termination_protection": self.termination_protection,
            "auto_recovery_enabled": self.auto_recovery_enabled,
            "spot_instance_enabled": self.spot_instance_enabled,
            "cloudwatch_logs_forwarding": self.cloudwatch_logs_forwarding,
            "log_retention_days": self.log_retention_days,
            "iam_role_name": self.iam_role_name,
            "iam_policies": self.iam_policies,
            "security_group_ingress_rules": self.security_group_ingress_rules,
            "security_group_egress_rules": self.security_group_egress_rules,
        })

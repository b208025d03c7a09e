"""
Pulumi components for EC2 compute on AWS.

- naming: resource names and tags from provider/os/environment/purpose codes
- validation: input predicates shared by the components
- security_group: security group with dynamic ingress/egress rules
- iam: IAM role and instance profile
- launch_template: launch template
- instance: standalone EC2 instance
- autoscaling: autoscaling group
"""

from .errors import InputValidationError
from .naming import ResourceName, compose_name, suffixed
from .security_group import SecurityGroup
from .iam import InstanceRole
from .launch_template import LaunchTemplate
from .instance import Ec2Instance
from .autoscaling import AutoscalingGroup

__all__ = [
    "InputValidationError",
    "ResourceName",
    "compose_name",
    "suffixed",
    "SecurityGroup",
    "InstanceRole",
    "LaunchTemplate",
    "Ec2Instance",
    "AutoscalingGroup",
]

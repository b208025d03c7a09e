import json

import pulumi
import pulumi_aws as aws

from . import naming, validation
from .errors import InputValidationError

SSM_MANAGED_INSTANCE_CORE = "arn:aws:iam::aws:policy/AmazonSSMManagedInstanceCore"
CLOUDWATCH_AGENT_SERVER = "arn:aws:iam::aws:policy/CloudWatchAgentServerPolicy"

EC2_ASSUME_ROLE_POLICY = json.dumps({
    "Version": "2012-10-17",
    "Statement": [
        {
            "Effect": "Allow",
            "Principal": {
                "Service": "ec2.amazonaws.com"
            },
            "Action": "sts:AssumeRole"
        }
    ]
})


def policy_name(arn):
    if isinstance(arn, pulumi.Output):
        return arn.apply(policy_name)
    return arn.rsplit("/", 1)[-1]


class InstanceRole(pulumi.ComponentResource):
    """IAM role trusted by EC2 plus the instance profile that carries it."""

    def __init__(self, name, managed_policy_arns=None, inline_policies=None,
                 enable_cloudwatch_agent=False, path="/", permissions_boundary=None,
                 tags=None, opts=None):
        name, tags = naming.resolve(name, extra_tags=tags)

        if managed_policy_arns is None:
            managed_policy_arns = [SSM_MANAGED_INSTANCE_CORE]
        arns = list(managed_policy_arns)
        if enable_cloudwatch_agent:
            arns.append(CLOUDWATCH_AGENT_SERVER)
        # keep first occurrence, attachments are keyed by position
        arns = list(dict.fromkeys(validation.policy_arn("managed_policy_arns", arn) for arn in arns))

        inline_policies = dict(inline_policies or {})
        for policy, document in inline_policies.items():
            validation.matches("inline_policies", policy, r"[\w+=,.@-]{1,128}")
            if not isinstance(document, (dict, str)):
                raise InputValidationError(f"inline_policies.{policy}", "must be a policy document dict or JSON string")
        validation.matches("path", path, r"/([\x21-\x7e]+/)?")

        super().__init__("ec2modules:iam:InstanceRole", name, None, opts)
        child_opts = pulumi.ResourceOptions(parent=self)

        # IAM Role for EC2 Instance
        self.role = aws.iam.Role(naming.suffixed(name, "role"),
            assume_role_policy=EC2_ASSUME_ROLE_POLICY,
            path=path,
            permissions_boundary=permissions_boundary,
            opts=child_opts,
            tags=tags
        )

        # Attach the managed policies to the role
        self.attachments = [
            aws.iam.RolePolicyAttachment(naming.suffixed(name, f"policy-{i}"),
                role=self.role.name,
                policy_arn=arn,
                opts=child_opts,
            )
            for i, arn in enumerate(arns)
        ]

        self.inline_policies = [
            aws.iam.RolePolicy(naming.suffixed(name, policy),
                name=policy,
                role=self.role.id,
                policy=document if isinstance(document, str) else json.dumps(document),
                opts=child_opts,
            )
            for policy, document in inline_policies.items()
        ]

        # Instance Profile for EC2 Instance
        self.instance_profile = aws.iam.InstanceProfile(naming.suffixed(name, "profile"),
            role=self.role.name,
            path=path,
            opts=child_opts,
            tags=tags
        )

        self.role_name = self.role.name
        self.role_arn = self.role.arn
        self.instance_profile_name = self.instance_profile.name
        self.instance_profile_arn = self.instance_profile.arn
        self.managed_policy_arns = arns
        self.policy_names = [policy_name(arn) for arn in arns] + list(inline_policies)

        self.register_outputs({
            "role_name": self.role_name,
            "role_arn": self.role_arn,
            "instance_profile_name": self.instance_profile_name,
            "instance_profile_arn": self.instance_profile_arn,
            "policy_names": self.policy_names,
        })

import os

import pulumi

config = pulumi.Config()

# AWS configuration
aws_region = config.get("awsRegion") or "eu-west-2"

# Existing VPC to deploy into, falls back to the VPC_ID environment variable
vpc_id = config.get("vpcId") or os.environ.get("VPC_ID")

# Which example to deploy: instance, asg or both
deployment = config.get("deployment") or "asg"

# Naming convention inputs
naming = config.get_object("naming") or {
    "provider": "aws",
    "os": "linux",
    "environment": "dev",
    "purpose": "web",
    "index": 1,
}

# EC2 Configuration
instance_type = config.get("instanceType") or "t3.micro"

ec2_config = config.get_object("ec2Config") or {
    "min_size": 1,
    "max_size": 3,
    "desired_capacity": 1
}

instance_config = config.get_object("instanceConfig") or {
    "associate_public_ip_address": False,
    "detailed_monitoring": True,
    "termination_protection": True,
    "auto_recovery": True,
    "cloudwatch_logs": True,
    "log_retention_days": 30,
    "root_volume": {"volume_size": 8, "volume_type": "gp3"},
}

ingress_rules = config.get_object("ingressRules") or [
    {
        "protocol": "tcp",
        "from_port": 80,
        "to_port": 80,
        "cidr_blocks": ["0.0.0.0/0"],
        "description": "HTTP",
    },
]

spot = config.get_bool("spot") or False

cpu_target = config.get_float("cpuTarget")

default_tags = config.get_object("defaultTags") or {
    "project": "pulumi-aws-ec2-modules",
    "owner": "platform",
}

user_data_script = """#!/bin/bash
dnf update -y
dnf install -y httpd
systemctl start httpd
systemctl enable httpd
echo "<h1>Hello World from $(hostname -f)</h1>" > /var/www/html/index.html
"""

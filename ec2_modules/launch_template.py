import base64

import pulumi
import pulumi_aws as aws

from . import ami, naming, storage, validation


def encode_user_data(script):
    if script is None:
        return None
    if isinstance(script, pulumi.Output):
        return script.apply(encode_user_data)
    return base64.b64encode(script.encode("utf-8")).decode("utf-8")


class LaunchTemplate(pulumi.ComponentResource):
    """Launch template shared by autoscaling groups and standalone instances.

    When associate_public_ip_address is set the security groups and subnet
    go into a network interface block, otherwise the security groups are
    attached with vpc_security_group_ids.
    """

    def __init__(self, name, image_id=None, instance_type="t3.micro", key_name=None,
                 user_data=None, iam_instance_profile_name=None, security_group_ids=None,
                 subnet_id=None, associate_public_ip_address=None, root_volume=None,
                 ebs_volumes=None, detailed_monitoring=False, require_imdsv2=True,
                 spot=False, spot_max_price=None, os="linux", architecture="x86_64",
                 update_default_version=True, tags=None, opts=None):
        os = name.os if isinstance(name, naming.ResourceName) else os
        name, tags = naming.resolve(name, extra_tags=tags)

        validation.instance_type("instance_type", instance_type)
        root_spec = storage.root_volume_spec(root_volume)
        root_device = storage.root_device_name(os, root_spec)
        volume_specs = storage.ebs_volume_specs(ebs_volumes, root_device)
        if image_id is not None:
            validation.ami_id("image_id", image_id)
        else:
            ami.check_platform(os, architecture)

        super().__init__("ec2modules:compute:LaunchTemplate", name, None, opts)
        if image_id is None:
            image_id = ami.lookup_ami(os, architecture, parent=self)
        security_group_ids = list(security_group_ids or [])

        network_interfaces = None
        vpc_security_group_ids = security_group_ids or None
        if associate_public_ip_address is not None:
            pulumi.log.debug(f"{name}: placing security groups on the primary network interface", resource=self)
            network_interfaces = [aws.ec2.LaunchTemplateNetworkInterfaceArgs(
                device_index=0,
                associate_public_ip_address="true" if associate_public_ip_address else "false",
                delete_on_termination="true",
                subnet_id=subnet_id,
                security_groups=security_group_ids,
            )]
            vpc_security_group_ids = None

        instance_market_options = None
        if spot:
            instance_market_options = aws.ec2.LaunchTemplateInstanceMarketOptionsArgs(
                market_type="spot",
                spot_options=aws.ec2.LaunchTemplateInstanceMarketOptionsSpotOptionsArgs(
                    max_price=spot_max_price,
                    instance_interruption_behavior="terminate",
                    spot_instance_type="one-time",
                ),
            )

        # Launch Template
        self.launch_template = aws.ec2.LaunchTemplate(naming.suffixed(name, "lt"),
            image_id=image_id,
            instance_type=instance_type,
            key_name=key_name,
            user_data=encode_user_data(user_data),
            iam_instance_profile=aws.ec2.LaunchTemplateIamInstanceProfileArgs(
                name=iam_instance_profile_name,
            ) if iam_instance_profile_name is not None else None,
            vpc_security_group_ids=vpc_security_group_ids,
            network_interfaces=network_interfaces,
            block_device_mappings=storage.launch_template_block_device_mappings(root_spec, volume_specs, root_device),
            monitoring=aws.ec2.LaunchTemplateMonitoringArgs(enabled=detailed_monitoring),
            metadata_options=aws.ec2.LaunchTemplateMetadataOptionsArgs(
                http_endpoint="enabled",
                http_tokens="required" if require_imdsv2 else "optional",
            ),
            instance_market_options=instance_market_options,
            tag_specifications=[
                aws.ec2.LaunchTemplateTagSpecificationArgs(resource_type=resource_type, tags=tags)
                for resource_type in ("instance", "volume")
            ],
            update_default_version=update_default_version,
            opts=pulumi.ResourceOptions(parent=self),
            tags=tags,
        )

        self.id = self.launch_template.id
        self.name = self.launch_template.name
        self.latest_version = self.launch_template.latest_version
        self.image_id = image_id
        self.instance_type = instance_type

        self.register_outputs({
            "id": self.id,
            "name": self.name,
            "latest_version": self.latest_version,
        })

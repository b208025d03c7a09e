"""Block device arguments built from plain volume dicts."""
import pulumi_aws as aws

from . import validation
from .errors import InputValidationError

DEFAULT_ROOT_VOLUME = {
    "volume_size": 8,
    "volume_type": "gp3",
    "encrypted": True,
    "delete_on_termination": True,
}

DEFAULT_ROOT_DEVICE_NAME = "/dev/xvda"

# Windows AMIs published by Amazon boot from sda1
ROOT_DEVICE_NAMES = {
    "linux": DEFAULT_ROOT_DEVICE_NAME,
    "windows": "/dev/sda1",
}


def root_volume_spec(spec=None):
    merged = dict(DEFAULT_ROOT_VOLUME)
    merged.update(spec or {})
    return validation.volume("root_volume", merged)


def root_device_name(os="linux", root_spec=None):
    if root_spec and root_spec.get("device_name"):
        return root_spec["device_name"]
    return ROOT_DEVICE_NAMES.get(os, DEFAULT_ROOT_DEVICE_NAME)


def ebs_volume_specs(specs=None, root_device=None):
    """Check the additional volumes, none of which may reuse the root device."""
    specs = list(specs or [])
    seen = {root_device} if root_device else set()
    for i, spec in enumerate(specs):
        if not spec.get("device_name"):
            raise InputValidationError(f"ebs_volumes[{i}].device_name", "is required")
        if spec["device_name"] in seen:
            raise InputValidationError(f"ebs_volumes[{i}].device_name", f"{spec['device_name']} is used twice")
        seen.add(spec["device_name"])
        validation.volume(f"ebs_volumes[{i}]", spec)
    return specs


def instance_root_block_device(spec, tags=None):
    return aws.ec2.InstanceRootBlockDeviceArgs(
        volume_size=spec["volume_size"],
        volume_type=spec["volume_type"],
        iops=spec.get("iops"),
        throughput=spec.get("throughput"),
        encrypted=spec.get("encrypted", True),
        kms_key_id=spec.get("kms_key_id"),
        delete_on_termination=spec.get("delete_on_termination", True),
        tags=tags,
    )


def instance_ebs_block_devices(specs, tags=None):
    return [
        aws.ec2.InstanceEbsBlockDeviceArgs(
            device_name=spec["device_name"],
            volume_size=spec.get("volume_size"),
            volume_type=spec.get("volume_type", "gp3"),
            iops=spec.get("iops"),
            throughput=spec.get("throughput"),
            encrypted=spec.get("encrypted", True),
            kms_key_id=spec.get("kms_key_id"),
            snapshot_id=spec.get("snapshot_id"),
            delete_on_termination=spec.get("delete_on_termination", True),
            tags=tags,
        )
        for spec in specs
    ]


def _flag(value):
    # launch template EBS flags are strings in the provider schema
    if value is None:
        return None
    return "true" if value else "false"


def launch_template_block_device_mappings(root_spec, specs, root_device=DEFAULT_ROOT_DEVICE_NAME):
    """Root device first, then one mapping per additional volume."""
    mappings = []
    for spec in [dict(root_spec, device_name=root_device)] + list(specs):
        mappings.append(aws.ec2.LaunchTemplateBlockDeviceMappingArgs(
            device_name=spec["device_name"],
            ebs=aws.ec2.LaunchTemplateBlockDeviceMappingEbsArgs(
                volume_size=spec.get("volume_size"),
                volume_type=spec.get("volume_type", "gp3"),
                iops=spec.get("iops"),
                throughput=spec.get("throughput"),
                encrypted=_flag(spec.get("encrypted", True)),
                kms_key_id=spec.get("kms_key_id"),
                snapshot_id=spec.get("snapshot_id"),
                delete_on_termination=_flag(spec.get("delete_on_termination", True)),
            ),
        ))
    return mappings

import pulumi
import pulumi_aws as aws

from . import validation

# Name filters for the latest images published by Amazon, keyed by os
AMI_NAME_FILTERS = {
    "linux": "al2023-ami-2023.*-kernel-*-{arch}",
    "windows": "Windows_Server-2022-English-Full-Base-*",
}

ARCHITECTURES = ("x86_64", "arm64")


def check_platform(os, architecture):
    validation.one_of("os", os, tuple(AMI_NAME_FILTERS))
    validation.one_of("architecture", architecture, ARCHITECTURES)
    if os == "windows":
        validation.one_of("architecture", architecture, ("x86_64",))
    return os, architecture


def lookup_ami(os="linux", architecture="x86_64", parent=None):
    """Id of the most recent Amazon-owned AMI for the given os."""
    check_platform(os, architecture)

    # Retrieve the latest AMI
    ami = aws.ec2.get_ami(most_recent=True,
        owners=["amazon"],
        filters=[
            aws.ec2.GetAmiFilterArgs(name="name", values=[AMI_NAME_FILTERS[os].format(arch=architecture)]),
            aws.ec2.GetAmiFilterArgs(name="architecture", values=[architecture]),
        ],
        opts=pulumi.InvokeOptions(parent=parent),
        )
    pulumi.log.debug(f"resolved {os}/{architecture} AMI to {ami.id}")
    return ami.id

import pulumi
import pytest

MOCK_AMI_ID = "ami-0123456789abcdef0"


class Ec2Mocks(pulumi.runtime.Mocks):
    """Records every registered resource so tests can inspect rendered inputs."""

    def __init__(self):
        self.resources = {}
        self.calls = []

    def new_resource(self, args: pulumi.runtime.MockResourceArgs):
        outputs = dict(args.inputs)
        if args.typ == "aws:ec2/instance:Instance":
            outputs.update(publicIp="203.0.113.12", privateIp=args.inputs.get("privateIp", "10.0.1.10"))
        elif args.typ == "aws:ec2/launchTemplate:LaunchTemplate":
            outputs.update(name=args.name, latestVersion=1)
        elif args.typ in ("aws:iam/role:Role", "aws:iam/instanceProfile:InstanceProfile",
                          "aws:autoscaling/group:Group", "aws:ec2/securityGroup:SecurityGroup"):
            outputs.setdefault("name", args.name)
            outputs["arn"] = f"arn:aws:mock::123456789012:{args.name}"
        self.resources[(args.typ, args.name)] = args.inputs
        return [args.name + "_id", outputs]

    def call(self, args: pulumi.runtime.MockCallArgs):
        self.calls.append((args.token, args.args))
        if args.token == "aws:ec2/getAmi:getAmi":
            return {"id": MOCK_AMI_ID, "architecture": "x86_64"}
        return {}

    def inputs(self, name, typ):
        return self.resources[(typ, name)]

    def of_type(self, typ):
        return {name: inputs for (t, name), inputs in self.resources.items() if t == typ}


MOCKS = Ec2Mocks()
pulumi.runtime.set_mocks(MOCKS, preview=False)


@pytest.fixture(autouse=True)
def mocks():
    MOCKS.resources.clear()
    MOCKS.calls.clear()
    return MOCKS

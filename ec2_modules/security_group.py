import pulumi
import pulumi_aws as aws

from . import naming, validation

ALLOW_ALL_EGRESS = {
    "protocol": "-1",
    "from_port": 0,
    "to_port": 0,
    "cidr_blocks": ["0.0.0.0/0"],
    "description": "Allow all outbound traffic",
}

# Ports that should not be reachable from the whole internet
REMOTE_ACCESS_PORTS = {22: "SSH", 3389: "RDP"}
OPEN_CIDRS = ("0.0.0.0/0", "::/0")


def normalize_rule(spec):
    """Fill defaults so rendered rules compare equal regardless of how they were written."""
    rule = {
        "protocol": str(spec.get("protocol", "tcp")),
        "from_port": spec.get("from_port", 0),
    }
    rule["to_port"] = spec.get("to_port", rule["from_port"])
    if rule["protocol"] == "all":
        rule["protocol"] = "-1"
    for key in validation.RULE_SOURCES + ("description",):
        if spec.get(key):
            rule[key] = spec[key]
    return rule


def _open_remote_access(rule):
    if rule["protocol"] not in ("tcp", "-1"):
        return None
    if validation.is_unknown(rule["from_port"]) or validation.is_unknown(rule["to_port"]):
        return None
    cidrs = list(rule.get("cidr_blocks") or []) + list(rule.get("ipv6_cidr_blocks") or [])
    if not any(block in OPEN_CIDRS for block in cidrs):
        return None
    for port, service in REMOTE_ACCESS_PORTS.items():
        if rule["protocol"] == "-1" or rule["from_port"] <= port <= rule["to_port"]:
            return service
    return None


class SecurityGroup(pulumi.ComponentResource):
    """Security group with one rule resource per ingress/egress entry.

    Rules are dicts with protocol, from_port, to_port, a single source
    (cidr_blocks, ipv6_cidr_blocks, source_security_group_id or self) and an
    optional description. Without egress_rules, all outbound traffic is
    allowed.
    """

    def __init__(self, name, vpc_id, description="Managed by Pulumi",
                 ingress_rules=None, egress_rules=None, tags=None,
                 revoke_rules_on_delete=False, opts=None):
        name, tags = naming.resolve(name, extra_tags=tags)

        ingress = [normalize_rule(validation.rule(f"ingress_rules[{i}]", r)) for i, r in enumerate(ingress_rules or [])]
        if egress_rules is None:
            egress_rules = [ALLOW_ALL_EGRESS]
        egress = [normalize_rule(validation.rule(f"egress_rules[{i}]", r)) for i, r in enumerate(egress_rules)]

        super().__init__("ec2modules:network:SecurityGroup", name, None, opts)
        for rule in ingress:
            service = _open_remote_access(rule)
            if service:
                pulumi.log.warn(f"{name}: {service} ingress is open to the internet", resource=self)

        child_opts = pulumi.ResourceOptions(parent=self)

        # Security Group in the given VPC
        self.security_group = aws.ec2.SecurityGroup(name,
            vpc_id=vpc_id,
            description=description,
            revoke_rules_on_delete=revoke_rules_on_delete,
            opts=child_opts,
            tags=tags
            )

        self.rules = []
        for kind, rules in (("ingress", ingress), ("egress", egress)):
            for i, rule in enumerate(rules):
                self.rules.append(aws.ec2.SecurityGroupRule(f"{name}-{kind}-{i}",
                    security_group_id=self.security_group.id,
                    type=kind,
                    protocol=rule["protocol"],
                    from_port=rule["from_port"],
                    to_port=rule["to_port"],
                    cidr_blocks=rule.get("cidr_blocks"),
                    ipv6_cidr_blocks=rule.get("ipv6_cidr_blocks"),
                    source_security_group_id=rule.get("source_security_group_id"),
                    self=rule.get("self"),
                    description=rule.get("description"),
                    opts=child_opts,
                    ))

        self.id = self.security_group.id
        self.name = self.security_group.name
        self.ingress_rules = ingress
        self.egress_rules = egress

        self.register_outputs({
            "id": self.id,
            "name": self.name,
            "ingress_rules": ingress,
            "egress_rules": egress,
        })

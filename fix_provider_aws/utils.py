import re
import zlib
from typing import Optional

from attrs import frozen

ArnPartitionRE = re.compile(r"^aws(-[a-z]+)*$")
ArnRegionRE = re.compile(r"^[a-z]{2}(-[a-z]+)+-\d+$")
ArnAccountRE = re.compile(r"^(\d+|aws)$")


@frozen
class Arn:
    partition: str
    service: str
    region: str
    account: str
    resource: str

    def __str__(self) -> str:
        return f"arn:{self.partition}:{self.service}:{self.region}:{self.account}:{self.resource}"


def parse_arn(value: str) -> Optional[Arn]:
    """
    Parse an ARN of the form arn:partition:service:region:account:resource.
    The resource part may contain colons itself.
    Returns None if the value is not a well-formed ARN.
    """
    parts = value.split(":", 5)
    if len(parts) != 6 or parts[0] != "arn":
        return None
    _, partition, service, region, account, resource = parts
    if not ArnPartitionRE.match(partition) or not service or not resource:
        return None
    if region and not ArnRegionRE.match(region):
        return None
    if account and not ArnAccountRE.match(account):
        return None
    return Arn(partition, service, region, account, resource)


def is_valid_arn(value: str) -> bool:
    return parse_arn(value) is not None


def string_hash(value: str) -> int:
    # unpaired surrogates are valid in json strings and are hashed as is
    return zlib.crc32(value.encode("utf-8", errors="surrogatepass")) & 0xFFFFFFFF


def arn_partition_by_region(region: str) -> str:
    arn_partition = "aws"
    if region.startswith("cn-"):
        arn_partition = "aws-cn"
    elif region.startswith("us-gov-"):
        arn_partition = "aws-us-gov"
    return arn_partition


def global_region_by_partition(partition: str) -> str:
    if partition == "aws":
        return "us-east-1"
    elif partition == "aws-us-gov":
        return "us-gov-west-1"
    elif partition == "aws-cn":
        return "cn-north-1"
    else:
        return "us-east-1"

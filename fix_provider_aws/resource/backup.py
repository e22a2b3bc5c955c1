import logging
from typing import ClassVar, Dict, List, Optional, Type

from attrs import define, field

from fix_provider_aws.aws_client import AwsClient
from fix_provider_aws.error import ValidationError
from fix_provider_aws.resource.base import AwsApiSpec, AwsProviderResource, AwsResourceType
from fix_provider_aws.resource.schema import (
    SchemaField,
    SchemaType,
    all_of,
    string_in_slice,
    string_len_between,
    string_match,
    validate_arn,
)
from fix_provider_aws.utils import string_hash
from fixlib.json import to_json
from fixlib.json_bender import Bender, S, ForallBend, bend
from fixlib.types import Json

log = logging.getLogger("fix.providers.aws")
service_name = "backup"

ConditionTypeStringEquals = "STRINGEQUALS"


def condition_tag_hash(condition: Json) -> int:
    """
    Identity of a tag condition: equal type, key and value always yield the same hash.
    """
    buf = ""
    for name in ("type", "key", "value"):
        if name in condition:
            buf += f"{condition[name]}-"
    return string_hash(buf)


@define(slots=False)
class AwsBackupSelectionCondition:
    kind: ClassVar[str] = "aws_backup_selection_condition"
    mapping: ClassVar[Dict[str, Bender]] = {
        "type": S("ConditionType"),
        "key": S("ConditionKey"),
        "value": S("ConditionValue"),
    }
    api_mapping: ClassVar[Dict[str, Bender]] = {
        "ConditionType": S("type"),
        "ConditionKey": S("key"),
        "ConditionValue": S("value"),
    }
    type: str = field(metadata={"description": "An operation applied to a key-value pair used to filter resources in a selection."})  # fmt: skip
    key: str = field(metadata={"description": "The key in a key-value pair. For example, in \"ec2:ResourceTag/Department\": \"accounting\", \"ec2:ResourceTag/Department\" is the key."})  # fmt: skip
    value: str = field(metadata={"description": "The value in a key-value pair. For example, in \"ec2:ResourceTag/Department\": \"accounting\", \"accounting\" is the value."})  # fmt: skip


def expand_condition_tags(tag_list: List[Json]) -> List[Json]:
    """
    Translate the configured tag conditions into the representation of the AWS API.
    The order of the input is kept.
    """
    return [bend(AwsBackupSelectionCondition.api_mapping, item) for item in tag_list]


@define(eq=False, slots=False)
class AwsBackupSelection(AwsProviderResource):
    kind: ClassVar[str] = "aws_backup_selection"
    _kind_display: ClassVar[str] = "AWS Backup Selection"
    _kind_service: ClassVar[Optional[str]] = service_name
    schema: ClassVar[Dict[str, SchemaField]] = {
        "name": SchemaField(
            SchemaType.string,
            required=True,
            force_new=True,
            validators=[
                all_of(
                    string_len_between(1, 50),
                    string_match(
                        r"^[a-zA-Z0-9\-_.]+$",
                        "must contain only alphanumeric, hyphen, underscore, and period characters",
                    ),
                )
            ],
            description="The display name of the resource selection.",
        ),
        "plan_id": SchemaField(
            SchemaType.string,
            required=True,
            force_new=True,
            description="The backup plan the selection is assigned to.",
        ),
        "iam_role_arn": SchemaField(
            SchemaType.string,
            required=True,
            force_new=True,
            validators=[validate_arn],
            description="The ARN of the IAM role that AWS Backup uses to back up the selected resources.",
        ),
        "tag": SchemaField(
            SchemaType.set,
            optional=True,
            force_new=True,
            elem={
                "type": SchemaField(
                    SchemaType.string,
                    required=True,
                    validators=[string_in_slice([ConditionTypeStringEquals])],
                ),
                "key": SchemaField(SchemaType.string, required=True),
                "value": SchemaField(SchemaType.string, required=True),
            },
            set_hash=condition_tag_hash,
            description="Tag conditions: resources are selected, if the tag key has the given value.",
        ),
        "resources": SchemaField(
            SchemaType.list,
            optional=True,
            force_new=True,
            elem=SchemaType.string,
            description="ARNs of the resources to assign to the backup plan.",
        ),
        "not_resources": SchemaField(
            SchemaType.list,
            optional=True,
            force_new=True,
            elem=SchemaType.string,
            description="ARNs of the resources to exclude from the backup plan.",
        ),
    }
    mapping: ClassVar[Dict[str, Bender]] = {
        "id": S("SelectionId"),
        "plan_id": S("BackupPlanId"),
        "name": S("BackupSelection", "SelectionName"),
        "iam_role_arn": S("BackupSelection", "IamRoleArn"),
        "tag": S("BackupSelection", "ListOfTags") >> ForallBend(AwsBackupSelectionCondition.mapping),
        "resources": S("BackupSelection", "Resources"),
        "not_resources": S("BackupSelection", "NotResources"),
    }
    plan_id: str = field(default="", metadata={"description": "Uniquely identifies the backup plan of this selection."})  # fmt: skip
    name: str = field(default="", metadata={"description": "The display name of a resource selection document."})  # fmt: skip
    iam_role_arn: str = field(default="", metadata={"description": "The ARN of the IAM role that Backup uses to authenticate when backing up the target resource."})  # fmt: skip
    tag: List[AwsBackupSelectionCondition] = field(factory=list, metadata={"description": "Conditions to select resources by tag."})  # fmt: skip
    resources: List[str] = field(factory=list, metadata={"description": "A list of Amazon Resource Names (ARNs) to assign to a backup plan."})  # fmt: skip
    not_resources: List[str] = field(factory=list, metadata={"description": "A list of Amazon Resource Names (ARNs) to exclude from a backup plan."})  # fmt: skip

    @property
    def display(self) -> str:
        return f"{self._kind_display} ({self.id or self.name})"

    @classmethod
    def called_mutator_apis(cls) -> List[AwsApiSpec]:
        return [
            AwsApiSpec(service_name, "create-backup-selection"),
            AwsApiSpec(service_name, "delete-backup-selection"),
            # the role is handed over to AWS Backup
            AwsApiSpec(service_name, "create-backup-selection", override_iam_permission="iam:PassRole"),
        ]

    @classmethod
    def called_read_apis(cls) -> List[AwsApiSpec]:
        return [AwsApiSpec(service_name, "get-backup-selection", expected_errors=["ResourceNotFoundException"])]

    def api_selection(self) -> Json:
        selection: Json = {
            "SelectionName": self.name,
            "IamRoleArn": self.iam_role_arn,
            "ListOfTags": expand_condition_tags([to_json(t) for t in self.tag]),
            "Resources": self.resources,
        }
        if self.not_resources:
            selection["NotResources"] = self.not_resources
        return selection

    def create_remote(self, client: AwsClient) -> str:
        selection_id: str = client.call(  # type: ignore
            aws_service=service_name,
            action="create-backup-selection",
            result_name="SelectionId",
            BackupPlanId=self.plan_id,
            BackupSelection=self.api_selection(),
        )
        return selection_id

    def read_remote(self, client: AwsClient) -> Optional[Json]:
        spec = self.called_read_apis()[0]
        return client.get(
            aws_service=spec.service,
            action=spec.api_action,
            expected_errors=spec.expected_errors,
            BackupPlanId=self.plan_id,
            SelectionId=self.id,
        )

    def delete_remote(self, client: AwsClient) -> None:
        client.call(
            aws_service=service_name,
            action="delete-backup-selection",
            result_name=None,
            BackupPlanId=self.plan_id,
            SelectionId=self.id,
        )

    @classmethod
    def from_import_id(cls: Type[AwsResourceType], import_id: str) -> AwsResourceType:
        plan_id, sep, selection_id = import_id.partition("|")
        if not sep or not plan_id or not selection_id or "|" in selection_id:
            raise ValidationError(cls.kind, [f"wrong format of import id ({import_id}), use: 'plan_id|selection_id'"])
        return cls.from_values({"id": selection_id, "plan_id": plan_id})

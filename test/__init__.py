from pytest import fixture

from fix_provider_aws import AwsProvider
from fix_provider_aws.aws_client import AwsClient
from fix_provider_aws.configuration import AwsConfig
from fixlib.types import Json
from test.resources import BackupSelectionStore, BotoStoreSession


@fixture
def backup_store() -> BackupSelectionStore:
    return BackupSelectionStore()


@fixture
def aws_config(backup_store: BackupSelectionStore) -> AwsConfig:
    config = AwsConfig(access_key_id="foo", secret_access_key="bar", region="us-east-1")
    config.sessions().session_class_factory = BotoStoreSession(backup_store)  # type: ignore
    return config


@fixture
def aws_client(aws_config: AwsConfig) -> AwsClient:
    return AwsClient.from_config(aws_config)


@fixture
def provider(aws_config: AwsConfig) -> AwsProvider:
    return AwsProvider(aws_config)


@fixture
def selection_config() -> Json:
    return {
        "name": "daily-db",
        "plan_id": "plan-1",
        "iam_role_arn": "arn:aws:iam::123:role/backup",
        "tag": [{"type": "STRINGEQUALS", "key": "env", "value": "prod"}],
        "resources": ["arn:aws:dynamodb:us-east-1:123456789012:table/orders"],
    }

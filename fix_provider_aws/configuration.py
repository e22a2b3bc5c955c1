import logging
import threading
import time
import uuid
from functools import lru_cache
from typing import Optional, Type

from attrs import define, field, fields_dict
from boto3.session import Session as BotoSession
from botocore.client import BaseClient
from botocore.config import Config as BotoConfig

from fixlib.json import from_json as from_js
from fixlib.types import Json

from .utils import global_region_by_partition

log = logging.getLogger("fix.providers.aws")


@define(hash=True, slots=False)
class AwsSessionHolder:
    access_key_id: Optional[str]
    secret_access_key: Optional[str]
    # Only here to override in tests
    session_class_factory: Type[BotoSession] = BotoSession
    session_lock: threading.Lock = threading.Lock()

    # noinspection PyUnusedLocal
    @lru_cache(maxsize=128)
    def __direct_session(self, profile: Optional[str], partition: str) -> BotoSession:
        global_region = global_region_by_partition(partition)
        if profile:
            return self.session_class_factory(profile_name=profile, region_name=global_region)
        else:
            return self.session_class_factory(
                aws_access_key_id=self.access_key_id,
                aws_secret_access_key=self.secret_access_key,
                region_name=global_region,
            )

    # noinspection PyUnusedLocal
    @lru_cache(maxsize=128)
    def __sts_session(
        self, aws_account: str, aws_role: str, profile: Optional[str], partition: str, cache_key: int
    ) -> BotoSession:
        role_arn = f"arn:{partition}:iam::{aws_account}:role/{aws_role}"
        session = self.__direct_session(profile, partition)
        sts = session.client("sts")
        log.info(f"Create AWS session by assuming role: {role_arn}.")
        token = sts.assume_role(
            RoleArn=role_arn,
            RoleSessionName=f"fixprovider-{aws_account}-{str(uuid.uuid4())}",
            DurationSeconds=3600,  # 1 hour
        )
        credentials = token["Credentials"]
        return self.session_class_factory(
            aws_access_key_id=credentials["AccessKeyId"],
            aws_secret_access_key=credentials["SecretAccessKey"],
            aws_session_token=credentials["SessionToken"],
            region_name=global_region_by_partition(partition),
        )

    def _session(
        self,
        aws_account: Optional[str],
        aws_role: Optional[str] = None,
        aws_profile: Optional[str] = None,
        aws_partition: str = "aws",
    ) -> BotoSession:
        """
        Note: the session is not thread safe - caller needs to synchronize access.
        Consider using the client() method instead.
        """
        if aws_role is None or aws_account is None:
            return self.__direct_session(aws_profile, aws_partition)
        else:
            # the sts session is valid for 1 hour: renew it after 10 minutes
            return self.__sts_session(aws_account, aws_role, aws_profile, aws_partition, int(time.time() / 600))

    def client(
        self,
        aws_account: Optional[str],
        aws_role: Optional[str],
        aws_profile: Optional[str],
        aws_service: str,
        region_name: Optional[str] = None,
        config: Optional[BotoConfig] = None,
        aws_partition: str = "aws",
    ) -> BaseClient:
        with self.session_lock:
            session = self._session(aws_account, aws_role, aws_profile, aws_partition)
            return session.client(aws_service, region_name=region_name, config=config)


@define(slots=False)
class AwsConfig:
    access_key_id: Optional[str] = field(
        default=None,
        metadata={"description": "AWS Access Key ID (null to load from env - recommended)"},
    )
    secret_access_key: Optional[str] = field(
        default=None,
        metadata={"description": "AWS Secret Access Key (null to load from env - recommended)"},
    )
    role: Optional[str] = field(
        default=None,
        metadata={"description": "IAM role name to assume in the target account. Requires account to be set."},
    )
    profile: Optional[str] = field(default=None, metadata={"description": "AWS profile to use"})
    account: Optional[str] = field(
        default=None,
        metadata={"description": "AWS Account ID that owns the managed resources"},
    )
    region: Optional[str] = field(
        default=None,
        metadata={"description": "AWS Region of the managed resources (null to load from env)"},
    )
    partition: Optional[str] = field(
        default=None,
        metadata={"description": "AWS partition (null to derive it from the region)"},
    )

    @staticmethod
    def from_json(json: Json) -> "AwsConfig":
        valid_fields = fields_dict(AwsConfig).keys()
        for field_name in json.copy().keys():
            if field_name not in valid_fields or field_name.startswith("_"):
                del json[field_name]
        return from_js(json, AwsConfig)

    _lock: threading.RLock = field(factory=threading.RLock)
    _holder: Optional[AwsSessionHolder] = field(default=None)

    def sessions(self) -> AwsSessionHolder:
        if self._holder is None:
            with self._lock:
                if self._holder is None:
                    log.debug("Creating a new AWS session holder")
                    self._holder = AwsSessionHolder(
                        access_key_id=self.access_key_id,
                        secret_access_key=self.secret_access_key,
                    )
        return self._holder

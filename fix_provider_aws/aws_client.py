from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, List, Optional

from botocore.config import Config
from botocore.exceptions import ClientError
from retrying import retry

from fix_provider_aws.configuration import AwsConfig
from fixlib.json import value_in_path
from fixlib.types import Json, JsonElement
from fixlib.utils import utc_str
from .utils import arn_partition_by_region

log = logging.getLogger("fix.providers.aws")

ThrottlingErrors = {
    "RequestThrottled",
    "RequestThrottledException",
    "ThrottledException",
    "Throttling",
    "ThrottlingException",
}
RetryableErrors = ThrottlingErrors | {
    "LimitExceededException",
    "RequestLimitExceeded",
    "RequestTimeout",
    "RequestTimeoutException",
    "TooManyRequestsException",
}


def is_retryable_exception(e: Exception) -> bool:
    if isinstance(e, ClientError) and e.response["Error"]["Code"] in RetryableErrors:
        log.debug("AWS API request limit exceeded or throttling, retrying with exponential backoff")
        return True
    return False


def error_code(e: ClientError) -> str:
    return e.response.get("Error", {}).get("Code") or "Unknown Code"


class AwsClient:
    def __init__(
        self,
        config: AwsConfig,
        account_id: Optional[str] = None,
        *,
        role: Optional[str] = None,
        profile: Optional[str] = None,
        region: Optional[str] = None,
        partition: Optional[str] = None,
    ) -> None:
        self.config = config
        self.account_id = account_id
        self.role = role
        self.profile = profile
        self.region = region
        if partition is None:
            partition = arn_partition_by_region(region) if region else "aws"
        self.partition = partition

    @staticmethod
    def from_config(config: AwsConfig) -> AwsClient:
        return AwsClient(
            config,
            config.account,
            role=config.role,
            profile=config.profile,
            region=config.region,
            partition=config.partition,
        )

    def __to_json(self, node: Any, **kwargs: Any) -> JsonElement:
        if node is None or isinstance(node, (str, int, float, bool)):
            return node
        elif isinstance(node, list):
            return [self.__to_json(item, **kwargs) for item in node]
        elif isinstance(node, dict):
            return {key: self.__to_json(value, **kwargs) for key, value in node.items()}
        elif isinstance(node, datetime):
            return utc_str(node)
        elif isinstance(node, bytes):
            return node.decode("utf-8")
        else:
            raise AttributeError(f"Unsupported type: {type(node)}")

    def call_single(
        self, aws_service: str, action: str, result_name: Optional[str] = None, max_attempts: int = 1, **kwargs: Any
    ) -> JsonElement:
        arg_info = ""
        if kwargs:
            arg_info += " with args " + ", ".join([f"{key}={value}" for key, value in kwargs.items()])
        log.debug(f"[Aws] calling service={aws_service} action={action}{arg_info}")
        py_action = action.replace("-", "_")
        # adaptive mode allows automated client-side throttling
        config = Config(retries={"max_attempts": max_attempts, "mode": "adaptive"})
        client = self.config.sessions().client(
            aws_account=self.account_id,
            aws_role=self.role,
            aws_profile=self.profile,
            aws_service=aws_service,
            region_name=self.region,
            config=config,
            aws_partition=self.partition,
        )
        try:
            result = getattr(client, py_action)(**kwargs)
            single: Json = self.__to_json(result)  # type: ignore
            log.debug(f"[Aws] called service={aws_service} action={action}{arg_info}: single result")
            return value_in_path(single, result_name) if result_name else single
        finally:
            client.close()

    def call(
        self,
        aws_service: str,
        action: str,
        result_name: Optional[str] = None,
        expected_errors: Optional[List[str]] = None,
        **kwargs: Any,
    ) -> JsonElement:
        """
        Call the action exactly once. Used for mutating calls, that should never be repeated implicitly.
        Errors with a code listed in expected_errors yield None, all other errors are raised.
        """
        try:
            return self.call_single(aws_service, action, result_name, max_attempts=1, **kwargs)
        except ClientError as e:
            expected_errors = expected_errors or []
            code = error_code(e)
            if code in expected_errors:
                log.debug(f"Expected error: {code}")
                return None
            else:
                raise

    @retry(  # type: ignore
        stop_max_attempt_number=10,  # 10 attempts: 1000 max 60000: max wait time is 5 minutes
        wait_exponential_multiplier=1000,
        wait_exponential_max=60000,
        retry_on_exception=is_retryable_exception,
    )
    def get_with_retry(
        self,
        aws_service: str,
        action: str,
        result_name: Optional[str],
        expected_errors: Optional[List[str]] = None,
        **kwargs: Any,
    ) -> JsonElement:
        try:
            # 5 attempts is the default
            return self.call_single(aws_service, action, result_name, max_attempts=5, **kwargs)
        except ClientError as e:
            expected_errors = expected_errors or []
            code = error_code(e)
            if code in expected_errors:
                log.debug(f"Expected error: {code}")
                return None
            elif code in RetryableErrors:
                log.warning(f"Call to {aws_service} action {action} failed and will be retried. Error: {e}")
            raise

    def get(
        self,
        aws_service: str,
        action: str,
        result_name: Optional[str] = None,
        expected_errors: Optional[List[str]] = None,
        **kwargs: Any,
    ) -> Optional[Json]:
        """
        Read only call: throttling errors are retried with exponential backoff.
        Errors with a code listed in expected_errors yield None, all other errors are raised.
        """
        return self.get_with_retry(aws_service, action, result_name, expected_errors, **kwargs)  # type: ignore

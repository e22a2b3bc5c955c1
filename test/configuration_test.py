from fix_provider_aws.configuration import AwsConfig


def test_default_config() -> None:
    config = AwsConfig()
    assert config.access_key_id is None
    assert config.secret_access_key is None
    assert config.role is None
    assert config.profile is None
    assert config.account is None
    assert config.region is None
    assert config.partition is None


def test_from_json() -> None:
    config = AwsConfig.from_json({"profile": "dev", "region": "us-east-1", "unknown": "ignored", "_holder": "ignored"})
    assert config.profile == "dev"
    assert config.region == "us-east-1"
    assert config.role is None


def test_session() -> None:
    config = AwsConfig("test", "test")
    # direct session
    assert config.sessions()._session("1234", aws_role=None) == config.sessions()._session("1234", aws_role=None)
    # the holder is created once
    assert config.sessions() is config.sessions()
    # no test for sts session, since this requires sts setup

from fix_provider_aws.resource.backup import AwsBackupSelection, condition_tag_hash
from fix_provider_aws.resource.schema import (
    SchemaField,
    SchemaType,
    all_of,
    diff,
    hash_set,
    requires_replacement,
    schema_json,
    string_in_slice,
    string_len_between,
    string_match,
    validate_arn,
    validate_config,
)

schema = AwsBackupSelection.schema
env_prod = {"type": "STRINGEQUALS", "key": "env", "value": "prod"}
team_db = {"type": "STRINGEQUALS", "key": "team", "value": "db"}
base = {
    "name": "daily",
    "plan_id": "plan-1",
    "iam_role_arn": "arn:aws:iam::123456789012:role/backup",
    "tag": [env_prod, team_db],
    "resources": ["arn:aws:s3:::a", "arn:aws:s3:::b"],
}


def test_validators() -> None:
    assert string_len_between(1, 3)("abc", "x") == []
    assert string_len_between(1, 3)("abcd", "x") == ["expected length of x to be in the range (1 - 3), got abcd"]
    assert string_match("[a-z]+", "lower case only")("abc", "x") == []
    assert string_match("[a-z]+", "lower case only")("aBc", "x") == ["invalid value for x (lower case only)"]
    assert string_in_slice(["A", "B"])("A", "x") == []
    assert string_in_slice(["A", "B"])("a", "x") == ["expected x to be one of ['A', 'B'], got a"]
    assert string_in_slice(["A", "B"], ignore_case=True)("a", "x") == []
    assert validate_arn("arn:aws:iam::123456789012:role/backup", "x") == []
    assert validate_arn("", "x") == ["x doesn't look like a valid ARN: "]
    assert len(validate_arn("arn:aws", "x")) == 1
    both = all_of(string_len_between(1, 3), string_match("[a-z]+", "lower"))
    assert len(both("ABCD", "x")) == 2


def test_validate_config() -> None:
    assert validate_config(schema, base) == []
    assert validate_config(schema, {**base, "unknown": 1}) == ["unknown: unsupported attribute"]
    assert validate_config(schema, {**base, "name": 23}) == ["name: expected string, got int"]
    assert validate_config(schema, {**base, "resources": "arn:aws:s3:::a"}) == ["resources: expected list, got str"]
    assert validate_config(schema, {**base, "resources": [1]}) == ["resources.0: expected string, got int"]
    assert validate_config(schema, {**base, "tag": ["env"]}) == ["tag.0: expected object, got str"]
    assert validate_config(schema, {**base, "tag": [{"type": "STRINGEQUALS", "key": "env"}]}) == [
        "tag.0.value: required attribute is missing"
    ]


def test_hash_set() -> None:
    assert hash_set(None, condition_tag_hash) == []
    with_duplicate = hash_set([env_prod, team_db, env_prod], condition_tag_hash)
    assert with_duplicate == hash_set([team_db, env_prod], condition_tag_hash)
    assert len(hash_set([env_prod, dict(env_prod)], condition_tag_hash)) == 1


def test_diff() -> None:
    assert diff(schema, base, base) == set()
    # order of a set does not matter
    assert diff(schema, base, {**base, "tag": [team_db, env_prod, team_db]}) == set()
    # order of a list matters
    assert diff(schema, base, {**base, "resources": list(reversed(base["resources"]))}) == {"resources"}
    # empty and missing optional collections are the same
    assert diff(schema, {**base, "not_resources": []}, base) == set()
    assert diff(schema, base, {**base, "tag": [env_prod]}) == {"tag"}
    assert diff(schema, base, {**base, "name": "weekly", "plan_id": "plan-2"}) == {"name", "plan_id"}


def test_requires_replacement() -> None:
    assert not requires_replacement(schema, base, {**base, "tag": [team_db, env_prod]})
    # every attribute of a backup selection forces a new resource
    for name, value in [("name", "other"), ("plan_id", "p"), ("iam_role_arn", "arn:aws:iam::1:role/x")]:
        assert requires_replacement(schema, base, {**base, name: value})
    assert requires_replacement(schema, base, {**base, "not_resources": ["arn:aws:s3:::c"]})
    mutable = {"description": SchemaField(SchemaType.string, optional=True)}
    assert not requires_replacement(mutable, {"description": "a"}, {"description": "b"})


def test_schema_json() -> None:
    js = schema_json(schema)
    assert set(js) == {"name", "plan_id", "iam_role_arn", "tag", "resources", "not_resources"}
    assert all(field["force_new"] for field in js.values())
    assert js["tag"]["type"] == "set"
    assert js["tag"]["elem"]["type"]["required"] is True
    assert js["resources"]["elem"] == "string"
    assert js["name"]["required"] is True

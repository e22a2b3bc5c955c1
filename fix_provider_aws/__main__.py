import json
import sys
from argparse import Namespace
from typing import Any, List, Optional, TextIO

from fix_provider_aws import AwsProvider
from fix_provider_aws.configuration import AwsConfig
from fix_provider_aws.error import ProviderError
from fixlib.args import ArgumentParser
from fixlib.logger import log, setup_logger, add_args as logging_add_args
from fixlib.types import Json

Operations = ["schema", "permissions", "create", "read", "delete", "import"]


def add_args(arg_parser: ArgumentParser) -> None:
    arg_parser.add_argument("operation", choices=Operations, help="Operation to execute")
    arg_parser.add_argument(
        "--kind",
        help="Kind of the resource (default: aws_backup_selection)",
        dest="kind",
        default="aws_backup_selection",
    )
    arg_parser.add_argument(
        "--input",
        help="Path to a json file with the configuration (create) or the state (read, delete). Use - for stdin.",
        dest="input",
        default="-",
    )
    arg_parser.add_argument("--import-id", help="Identifier of the resource to import", dest="import_id")
    arg_parser.add_argument("--aws-config", help="Path to a json file with the AWS configuration", dest="aws_config")
    arg_parser.add_argument("--aws-profile", help="AWS profile to use", dest="aws_profile")
    arg_parser.add_argument("--aws-region", help="AWS region of the resource", dest="aws_region")
    arg_parser.add_argument("--aws-account", help="AWS account of the resource", dest="aws_account")
    arg_parser.add_argument("--aws-role", help="IAM role to assume in the AWS account", dest="aws_role")


def aws_config_from(args: Namespace) -> AwsConfig:
    js: Json = {}
    if args.aws_config:
        with open(args.aws_config) as f:
            js = json.load(f)
    overrides = {
        "profile": args.aws_profile,
        "region": args.aws_region,
        "account": args.aws_account,
        "role": args.aws_role,
    }
    js.update({k: v for k, v in overrides.items() if v is not None})
    return AwsConfig.from_json(js)


def read_input(args: Namespace, stdin: TextIO) -> Json:
    if args.input == "-":
        return json.load(stdin)  # type: ignore
    with open(args.input) as f:
        return json.load(f)  # type: ignore


def run(args: Namespace, provider: AwsProvider, stdin: TextIO = sys.stdin, stdout: TextIO = sys.stdout) -> None:
    result: Any = None
    if args.operation == "schema":
        result = provider.schema()
    elif args.operation == "permissions":
        result = provider.required_permissions()
    elif args.operation == "create":
        result = provider.create(args.kind, read_input(args, stdin))
    elif args.operation == "read":
        result = provider.read(args.kind, read_input(args, stdin))
    elif args.operation == "delete":
        provider.delete(args.kind, read_input(args, stdin))
    elif args.operation == "import":
        if not args.import_id:
            raise ValueError("import requires --import-id")
        result = provider.import_state(args.kind, args.import_id)
    if result is not None:
        json.dump(result, stdout, indent=2)
        stdout.write("\n")


def main(argv: Optional[List[str]] = None) -> None:
    setup_logger("fixprovider-aws", json_format=False)
    arg_parser = ArgumentParser(description="Fix AWS resource provider", env_args_prefix="FIXPROVIDER_AWS_")
    add_args(arg_parser)
    logging_add_args(arg_parser)
    args = arg_parser.parse_args(argv)
    try:
        run(args, AwsProvider(aws_config_from(args)))
    except (ProviderError, ValueError, OSError) as e:
        log.error(str(e))
        sys.exit(1)


if __name__ == "__main__":
    main()

#!/usr/bin/env python3
"""
RTB Samples - Authorized Buyers Real-time Bidding API Command Line Samples

Usage:
  rtb-samples init <config.yaml>     Initialize with a samples config file
  rtb-samples creatives              List creatives of a buyer account
  rtb-samples creative               Show a single creative
  rtb-samples notifications          Pull creative status notifications

Run "rtb-samples <command> --help" for the options of a command.

Examples:
  rtb-samples init rtb.yaml
  rtb-samples creatives --account_id 12345678 --view SERVING_DECISION_ONLY
  rtb-samples creatives -a 12345678 --format detail --limit 5
  rtb-samples creative -a 12345678 -c my-creative-id
  rtb-samples notifications -s projects/p/subscriptions/s --acknowledge yes
"""
import base64
import json
import os
import shutil
import sys

import yaml
from tabulate import tabulate

import rtb_util
from rtb_options import Option, OptionType, Parser
from rtb_util import MAX_PAGE_SIZE, print_creative

CREATIVE_VIEWS = ["SERVING_DECISION_ONLY", "FULL"]
OUTPUT_FORMATS = ["TABLE", "JSON", "DETAIL"]


# --- Core Service Logic ---
class RTBService:
    def __init__(self, config_path=None):
        self.config = rtb_util.load_config(config_path)
        self.key_file = self.config["path_to_private_key_file"]
        self.version = self.config.get("version", rtb_util.DEFAULT_VERSION)
        self._service = None
        self._pubsub = None

    @property
    def service(self):
        if self._service is None:
            self._service = rtb_util.get_service(self.key_file, self.version)
        return self._service

    @property
    def pubsub(self):
        if self._pubsub is None:
            self._pubsub = rtb_util.get_cloud_pub_sub_service(self.key_file)
        return self._pubsub

    def list_creatives(self, account_id, view="FULL", filter_query=None,
                       page_size=MAX_PAGE_SIZE, limit=None):
        """List creatives of a buyer, following pages until limit is reached."""
        creatives = []
        page_token = None
        while True:
            params = {
                "parent": f"buyers/{account_id}",
                "pageSize": page_size,
                "view": view,
            }
            if filter_query:
                params["filter"] = filter_query
            if page_token:
                params["pageToken"] = page_token

            response = self.service.buyers().creatives().list(**params).execute()
            creatives.extend(response.get("creatives", []))
            if limit is not None and len(creatives) >= limit:
                return creatives[:limit]

            page_token = response.get("nextPageToken")
            if not page_token:
                return creatives

    def get_creative(self, account_id, creative_id, view="FULL"):
        name = f"buyers/{account_id}/creatives/{creative_id}"
        return self.service.buyers().creatives().get(name=name, view=view).execute()

    def pull_notifications(self, subscription, max_messages=10, acknowledge=False):
        """Pull messages from a Pub/Sub subscription, decoding their data."""
        subscriptions = self.pubsub.projects().subscriptions()
        response = subscriptions.pull(
            subscription=subscription, body={"maxMessages": max_messages}
        ).execute()
        received = response.get("receivedMessages", [])

        messages = []
        for r in received:
            message = r.get("message", {})
            data = message.get("data")
            messages.append({
                "ackId": r.get("ackId"),
                "messageId": message.get("messageId"),
                "data": base64.b64decode(data).decode("utf-8") if data else "",
                "attributes": message.get("attributes", {}),
            })

        if acknowledge and messages:
            subscriptions.acknowledge(
                subscription=subscription,
                body={"ackIds": [m["ackId"] for m in messages]},
            ).execute()
        return messages


def _status(creative, key):
    decision = creative.get("creativeServingDecision") or {}
    return (decision.get(key) or {}).get("status", "-")


# --- Command options ---
def account_option(config):
    return Option(
        "account_id",
        "The resource ID of the buyers resource under which the creatives were "
        "created. This will be used to construct the name used as a path "
        "parameter for the creatives requests.",
        short_alias="a",
        required=True,
        default_value=config.get("account_id"),
    )


def view_option():
    return Option(
        "view",
        "Controls the amount of information included in the response.",
        short_alias="v",
        valid_values=CREATIVE_VIEWS,
        default_value="FULL",
    )


def format_option(default="TABLE"):
    return Option(
        "format",
        "How to display the results.",
        short_alias="o",
        valid_values=OUTPUT_FORMATS,
        default_value=default,
    )


def creatives_options(config):
    return [
        account_option(config),
        view_option(),
        Option(
            "filter",
            "Query string to filter creatives, e.g. "
            "'creativeServingDecision.dealsServingStatus.status=APPROVED'.",
            short_alias="f",
        ),
        Option(
            "page_size",
            "The number of rows to return per page.",
            type=OptionType.INTEGER,
            short_alias="p",
            default_value=MAX_PAGE_SIZE,
        ),
        Option(
            "limit",
            "The maximum number of creatives to show.",
            type=OptionType.INTEGER,
            short_alias="l",
        ),
        format_option(),
    ]


def creative_options(config):
    return [
        account_option(config),
        Option(
            "creative_id",
            "The resource ID of the buyers.creatives resource to get.",
            short_alias="c",
            required=True,
        ),
        view_option(),
        format_option(default="DETAIL"),
    ]


def notifications_options(config):
    return [
        Option(
            "subscription_name",
            "The Pub/Sub subscription receiving creative status notifications, "
            "in the format 'projects/{project}/subscriptions/{subscription}'.",
            short_alias="s",
            required=True,
            default_value=config.get("subscription"),
        ),
        Option(
            "max_messages",
            "The maximum number of messages to pull.",
            type=OptionType.INTEGER,
            short_alias="m",
            default_value=10,
        ),
        Option(
            "acknowledge",
            "Whether to acknowledge the pulled messages.",
            type=OptionType.BOOLEAN,
            short_alias="k",
            default_value=False,
        ),
        format_option(),
    ]


# --- CLI Implementation ---
def print_help():
    print(__doc__.strip())


def init_samples(config_path):
    """Initialize config by copying to ~/.rtb-samples/config.yaml."""
    resolved = os.path.normpath(os.path.abspath(config_path))
    if not os.path.exists(resolved):
        raise FileNotFoundError(f"Config file not found: {resolved}")

    with open(resolved, "r") as f:
        config = yaml.safe_load(f)
    section = rtb_util.validate_config(config)

    rtb_util.ensure_config_dir()
    shutil.copy(resolved, rtb_util.CONFIG_FILE)
    print("Configuration saved!")
    print(f"Private key file: {section['path_to_private_key_file']}")


def run_creatives(rtb, args):
    creatives = rtb.list_creatives(
        args["account_id"],
        view=args["view"].upper(),
        filter_query=args["filter"],
        page_size=args["page_size"],
        limit=args["limit"],
    )
    output = args["format"].upper()
    if output == "JSON":
        print(json.dumps(creatives, indent=2))
        return

    print(f"\n=== Creatives (showing {len(creatives)}) ===\n")
    if not creatives:
        print("No creatives found.")
    elif output == "DETAIL":
        for creative in creatives:
            print_creative(creative)
    else:
        rows = [
            [
                c.get("creativeId", "-"),
                c.get("creativeFormat", "-"),
                _status(c, "dealsServingStatus"),
                _status(c, "openAuctionServingStatus"),
                c.get("version", "-"),
            ]
            for c in creatives
        ]
        headers = ["Creative ID", "Format", "Deals", "Open Auction", "Version"]
        print(tabulate(rows, headers=headers, tablefmt="github"))


def run_creative(rtb, args):
    creative = rtb.get_creative(
        args["account_id"], args["creative_id"], view=args["view"].upper()
    )
    if args["format"].upper() == "JSON":
        print(json.dumps(creative, indent=2))
    else:
        print_creative(creative)


def run_notifications(rtb, args):
    messages = rtb.pull_notifications(
        args["subscription_name"],
        max_messages=args["max_messages"],
        acknowledge=args["acknowledge"],
    )
    if args["format"].upper() == "JSON":
        print(json.dumps(messages, indent=2))
        return

    print(f"\n=== Notifications (received {len(messages)}) ===\n")
    if not messages:
        print("No messages available.")
        return
    for m in messages:
        print(f"* Message ID: {m['messageId']}")
        for name, value in sorted(m["attributes"].items()):
            print(f"\t- {name}: {value}")
        print(f"\t- Data: {m['data']}")
    if args["acknowledge"]:
        print(f"\nAcknowledged {len(messages)} message(s).")


COMMANDS = {
    "creatives": (creatives_options, run_creatives),
    "creative": (creative_options, run_creative),
    "notifications": (notifications_options, run_notifications),
}


def main(argv=None):
    args = list(sys.argv[1:] if argv is None else argv)
    if not args:
        print_help()
        sys.exit(0)

    cmd = args.pop(0)
    prog = f"rtb-samples {cmd}"

    try:
        if cmd == "init":
            Parser([], prog=prog, description="Save a samples config file.").parse(args)
            if not args:
                print("Error: Config path required", file=sys.stderr)
                print("Usage: rtb-samples init <path-to-config.yaml>", file=sys.stderr)
                sys.exit(1)
            init_samples(args[0])
            return

        if cmd not in COMMANDS:
            print(f"Unknown command: {cmd}", file=sys.stderr)
            print('Run "rtb-samples" without args to see available commands', file=sys.stderr)
            sys.exit(1)

        build_options, run = COMMANDS[cmd]
        if "-h" in args or "--help" in args:
            # Usage does not need a config file; argparse exits after printing.
            Parser(build_options({}), prog=prog).parse(args)

        rtb = RTBService()
        parsed = Parser(build_options(rtb.config), prog=prog).parse(args)
        run(rtb, parsed)

    except Exception as e:
        rtb_util.exit_with_error(e, prog)


if __name__ == "__main__":
    main()

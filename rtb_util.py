"""
Common utilities used by the Authorized Buyers Real-time Bidding API samples.

- Configuration: YAML file with a "realtime_bidding" section
- Error log: ~/.rtb-samples/errors.log
- Authentication: service account JSON key file (google-auth)
- Clients: Real-time Bidding API and Cloud Pub/Sub API (googleapiclient)
- Output: print_creative

Config file format:

realtime_bidding:
  path_to_private_key_file: "/path/to/service-account.json"
  account_id: "12345678"                          # optional
  subscription: "projects/p/subscriptions/s"      # optional
"""
import datetime
import os
import sys

import google_auth_httplib2
import httplib2
import yaml
from google.auth.transport.requests import Request
from google.oauth2 import service_account
from googleapiclient import discovery
from googleapiclient.http import set_user_agent

from rtb_options import InvalidArgument

REALTIME_BIDDING_V1 = "v1"
DEFAULT_VERSION = REALTIME_BIDDING_V1
SUPPORTED_RTB_API_VERSIONS = [REALTIME_BIDDING_V1]

REALTIME_BIDDING_SCOPE = "https://www.googleapis.com/auth/realtime-bidding"
PUBSUB_SCOPE = "https://www.googleapis.com/auth/pubsub"

APPLICATION_NAME = f"Python Real-time Bidding API samples: {os.path.basename(sys.argv[0])}"
APPLICATION_VERSION = "1.0.0"
USER_AGENT = f"{APPLICATION_NAME}/{APPLICATION_VERSION}"

# The maximum number of results to be returned in a page for any list response.
MAX_PAGE_SIZE = 50

# --- Constants & Setup ---
CONFIG_DIR = os.path.join(os.path.expanduser("~"), ".rtb-samples")
CONFIG_FILE = os.path.join(CONFIG_DIR, "config.yaml")
ERROR_LOG_FILE = os.path.join(CONFIG_DIR, "errors.log")
CONFIG_ENV_VAR = "RTB_SAMPLES_CONFIG"
CONFIG_SECTION = "realtime_bidding"


class ConfigError(ValueError):
    """The samples configuration file is missing or incomplete."""


def ensure_config_dir():
    if not os.path.exists(CONFIG_DIR):
        os.makedirs(CONFIG_DIR, exist_ok=True)


def log_error(error, context="unknown"):
    ensure_config_dir()
    timestamp = datetime.datetime.now().isoformat()
    message = str(error)
    entry = f"[{timestamp}] [{context}] {message}\n"
    with open(ERROR_LOG_FILE, "a") as f:
        f.write(entry)


def exit_with_error(error, context):
    log_error(error, context)
    print(f"Error: {error}", file=sys.stderr)
    print(f"Details logged to: {ERROR_LOG_FILE}", file=sys.stderr)
    sys.exit(1)


def resolve_config_path(path=None):
    return path or os.environ.get(CONFIG_ENV_VAR) or CONFIG_FILE


def validate_config(config):
    """Check a parsed config document and return its realtime_bidding section."""
    if not isinstance(config, dict) or CONFIG_SECTION not in config:
        raise ConfigError(f'Invalid config: missing "{CONFIG_SECTION}" section')
    section = config[CONFIG_SECTION] or {}
    if not section.get("path_to_private_key_file"):
        raise ConfigError(
            f'Invalid config: missing "{CONFIG_SECTION}.path_to_private_key_file"'
        )
    return section


def load_config(path=None):
    path = resolve_config_path(path)
    if not os.path.exists(path):
        raise ConfigError(
            f"No config found at {path}. Run with: rtb-samples init <path-to-config.yaml>"
        )
    with open(path, "r") as f:
        config = yaml.safe_load(f)
    return validate_config(config)


# --- Authentication & Clients ---
def get_credentials(key_file, scope):
    """Load service account credentials for scope and fetch an access token."""
    credentials = service_account.Credentials.from_service_account_file(
        key_file, scopes=[scope]
    )
    credentials.refresh(Request())
    return credentials


def get_authorized_http(credentials):
    """HTTP object that signs requests with credentials and sends the samples
    user agent."""
    http = set_user_agent(httplib2.Http(), USER_AGENT)
    return google_auth_httplib2.AuthorizedHttp(credentials, http=http)


def get_service(key_file, version=DEFAULT_VERSION):
    """Handles authentication and initializes the Real-time Bidding API client."""
    if version not in SUPPORTED_RTB_API_VERSIONS:
        raise InvalidArgument(
            f"Unsupported version ({version}) of the Real-time Bidding API specified!"
        )
    credentials = get_credentials(key_file, REALTIME_BIDDING_SCOPE)
    return discovery.build(
        "realtimebidding", version, http=get_authorized_http(credentials),
        cache_discovery=False,
    )


def get_cloud_pub_sub_service(key_file):
    """Handles authentication and initializes a Google Cloud Pub/Sub client."""
    credentials = get_credentials(key_file, PUBSUB_SCOPE)
    return discovery.build(
        "pubsub", "v1", http=get_authorized_http(credentials), cache_discovery=False
    )


# --- Output ---
def _snake_case(key):
    return "".join(f"_{c.lower()}" if c.isupper() else c for c in key)


def _attr(obj, key, default=None):
    """Get a field from a REST response dict (camelCase) or an object
    (snake_case attributes)."""
    if obj is None:
        return default
    if isinstance(obj, dict):
        val = obj.get(key)
    else:
        val = getattr(obj, _snake_case(key), None)
    return val if val is not None else default


def _print_list(title, values):
    if values is None:
        return
    print(f"\t- {title}:")
    for value in values:
        print(f"\t\t{value}")


def _print_image(title, image):
    if image is None:
        return
    print(f"\t\t{title} contents:")
    print(f"\t\t\tURL: {_attr(image, 'url', '')}")
    print(f"\t\t\tHeight: {_attr(image, 'height', '')}")
    print(f"\t\t\tWidth: {_attr(image, 'width', '')}")


def print_creative(creative):
    print(f"* Creative ID: {_attr(creative, 'creativeId', '')}")

    version = _attr(creative, "version")
    if version is not None:
        print(f"\t- Version: {version}")

    print(f"\t- Creative format: {_attr(creative, 'creativeFormat', '')}")

    serving_decision = _attr(creative, "creativeServingDecision")
    print("\t- Creative Serving Decision")
    for label, key in (
        ("Deals Serving Status", "dealsServingStatus"),
        ("Open Auction Serving Status", "openAuctionServingStatus"),
        ("China Serving Status", "chinaServingStatus"),
        ("Russia Serving Status", "russiaServingStatus"),
    ):
        status = _attr(_attr(serving_decision, key), "status", "")
        print(f"\t\t{label}: {status}")

    _print_list("Declared Click-Through URLs", _attr(creative, "declaredClickThroughUrls"))
    _print_list("Declared Attributes", _attr(creative, "declaredAttributes"))
    _print_list("Declared Vendor IDs", _attr(creative, "declaredVendorIds"))
    _print_list(
        "Declared Restricted Categories", _attr(creative, "declaredRestrictedCategories")
    )

    html = _attr(creative, "html")
    if html is not None:
        print("\t- HTML creative contents:")
        print(f"\t\tSnippet: {_attr(html, 'snippet', '')}")
        print(f"\t\tHeight: {_attr(html, 'height', '')}")
        print(f"\t\tWidth: {_attr(html, 'width', '')}")

    native = _attr(creative, "native")
    if native is not None:
        print("\t- Native creative contents:")
        print(f"\t\tHeadline: {_attr(native, 'headline', '')}")
        print(f"\t\tBody: {_attr(native, 'body', '')}")
        print(f"\t\tCallToAction: {_attr(native, 'callToAction', '')}")
        print(f"\t\tAdvertiser Name: {_attr(native, 'advertiserName', '')}")
        print(f"\t\tStar Rating: {_attr(native, 'starRating', '')}")
        print(f"\t\tClick Link URL: {_attr(native, 'clickLinkUrl', '')}")
        print(f"\t\tClick Tracking URL: {_attr(native, 'clickTrackingUrl', '')}")
        print(f"\t\tPrice Display Text: {_attr(native, 'priceDisplayText', '')}")
        _print_image("Image", _attr(native, "image"))
        _print_image("Logo", _attr(native, "logo"))
        _print_image("App Icon", _attr(native, "appIcon"))

    video = _attr(creative, "video")
    if video is not None:
        print("\t- Video creative contents:")
        video_url = _attr(video, "videoUrl")
        if video_url is not None:
            print(f"\t\tVideo URL: {video_url}")
        vast_xml = _attr(video, "videoVastXml")
        if vast_xml is not None:
            print(f"\t\tVideo VAST XML: {vast_xml}")

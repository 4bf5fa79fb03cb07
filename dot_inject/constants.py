"""Constants and default values for dot-inject."""

from pathlib import Path

# ============================================================================
# Paths
# ============================================================================

# Base directory for dot-inject data
DOT_INJECT_DIR = Path.home() / ".config" / "dot-inject"

# Configuration file
CONFIG_TOML = DOT_INJECT_DIR / "config.toml"

# Log file
LOG_FILE = DOT_INJECT_DIR / "dot-inject.log"

# Local encrypted vault
VAULT_FILE = DOT_INJECT_DIR / "vault.json"
VAULT_KEY_FILE = DOT_INJECT_DIR / ".key"
VAULT_LOCK_FILE = DOT_INJECT_DIR / ".vault.lock"

# ============================================================================
# Templates
# ============================================================================

TEMPLATE_SUFFIXES = (".template", ".tmpl", ".tpl")
BACKUP_SUFFIX = ".backup"
STDIN_SENTINEL = "-"

# Reference scheme used by the go format: {{ op://VAULT/NAME/FIELD }}
REFERENCE_SCHEME = "op"

# Locations searched by inject-all, relative to the home directory
TEMPLATE_LOCATIONS = [
    ".aws",
    ".config",
    ".ssh",
    "configs",
    "templates",
    ".templates",
]

# How deep inject-all looks into the current directory
CWD_SEARCH_DEPTH = 3

# ============================================================================
# Secret defaults
# ============================================================================

DEFAULT_FORMAT = "auto"
DEFAULT_VAULT = "Employee"
DEFAULT_FIELD = "credential"
DEFAULT_BACKEND = "1password"
VALID_BACKENDS = ["1password", "local"]

DEFAULT_CACHE_TTL = 300  # seconds
DEFAULT_OP_TIMEOUT = 10.0  # seconds
OP_ITEM_CATEGORY = "API Credential"

# Secrets pre-loaded by --warm-cache
WARM_SECRETS = [
    "GITHUB_TOKEN",
    "GITLAB_TOKEN",
    "ANTHROPIC_API_KEY",
    "AWS_ACCESS_KEY_ID",
    "AWS_SECRET_ACCESS_KEY",
]

# Secrets exported by `dot-inject env`, as VAR[:secret[:field]]
ENV_SECRETS = [
    "GITHUB_TOKEN",
    "GITLAB_TOKEN",
    "ANTHROPIC_API_KEY",
    "AWS_ACCESS_KEY_ID",
    "AWS_SECRET_ACCESS_KEY",
    "HOMEBREW_GITHUB_API_TOKEN",
    "OPENAI_API_KEY",
]

# Extra secrets per account context (OP_ACCOUNT_ALIAS)
ENV_CONTEXT_SECRETS = {
    "work": [
        "DATADOG_API_KEY",
        "DATADOG_APP_KEY",
        "DD_API_KEY:DATADOG_API_KEY",
        "DD_APP_KEY:DATADOG_APP_KEY",
    ],
    "personal": [
        "DIGITALOCEAN_TOKEN",
        "CLOUDFLARE_API_TOKEN",
    ],
}

# Vaults tried in order when a secret is missing from the requested one
ENV_FALLBACK_VAULTS = ["Employee", "Personal", "Private"]

# Marker variables set after a load
ENV_LOADED = "OP_SECRETS_LOADED"
ENV_LOADED_AT = "OP_SECRETS_LOADED_AT"

# ============================================================================
# Environment variables
# ============================================================================

ENV_CACHE_ENABLED = "OP_CACHE_ENABLED"
ENV_CACHE_TTL = "OP_CACHE_TTL"
ENV_ACCOUNT = "OP_ACCOUNT"
ENV_DEBUG = "TEMPLATE_DEBUG"
ENV_ACCOUNT_ALIAS = "OP_ACCOUNT_ALIAS"

# ============================================================================
# Exit codes
# ============================================================================

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_INTERRUPTED = 130

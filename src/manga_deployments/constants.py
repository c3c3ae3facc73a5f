"""Configuration constants for manga-deployments library."""

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

# Contract pair: the hub aggregates monthly data, the asset issues chapter tokens
HUB_CONTRACT = "MonthlyDataUploader"
ASSET_CONTRACT = "MangaNFT"

# Wiring surface of the pair
BIND_METHOD = "updateMangaNFTContract"
HUB_REFERENCE_GETTER = "mangaNFTContract"
ASSET_REFERENCE_GETTER = "monthlyDataUploader"

# Defaults carried over from the original deployment tooling
DEFAULT_RPC_URL = "https://rpc-amoy.polygon.technology"
DEFAULT_PAYMENT_TOKEN = "0x0000000000000000000000000000000000001010"
DEFAULT_BASE_URI = "https://api.manga.com/metadata/"
DEFAULT_GAS_LIMIT = 5_000_000
DEFAULT_WIRING_GAS_LIMIT = 200_000
DEFAULT_CALL_GAS_LIMIT = 1_000_000
DEFAULT_GAS_PRICE_GWEI = "20"
DEFAULT_CONFIRMATION_TIMEOUT = 120.0
DEFAULT_POLL_INTERVAL = 1.0
DEFAULT_REQUEST_TIMEOUT = 30

# Coarse "month": 30 days, must match the on-chain period keys
PERIOD_SECONDS = 60 * 60 * 24 * 30

# Revert payload selectors: Error(string) and Panic(uint256)
ERROR_STRING_SELECTOR = bytes.fromhex("08c379a0")
PANIC_SELECTOR = bytes.fromhex("4e487b71")

# Chain identities based on ethereum-lists/chains
KNOWN_NETWORKS = {
    1: "mainnet",
    137: "matic",
    80002: "amoy",
    11155111: "sepolia",
    31337: "anvil",
}

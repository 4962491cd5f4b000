from munch import munchify, Munch

# Default config for the roundtrip cli.
defaults: Munch = munchify(
    {
        "netuid": "21",
        "subtensor": {"network": "finney", "chain_endpoint": None, "_mock": False},
        "wallet": {
            "name": "default",
            "hotkey": "default",
            "path": "~/.bittensor/wallets/",
        },
        "demo": {
            "total_size": 1 * 1024,  # 1 KiB
            "fragment_size": 256,  # 1 KiB = 4 * 256 B
            "replicas": 1,
            "stake_limit": 500,
            "timeout": 270,
            "workdir": None,
            "events_path": "~/.bittensor/roundtrip",
        },
        "identity": {
            "private_key": None,
            "expected_address": None,
        },
    }
)

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from web3 import Web3


class CamelModel(BaseModel):
    """Snake-case in Python, camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


def check_wallet_address(value: str) -> str:
    value = value.strip()
    if not Web3.is_address(value):
        raise ValueError("walletAddress must be a valid Ethereum address")
    return value

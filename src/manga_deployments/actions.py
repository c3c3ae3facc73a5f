"""Single-transaction actions against the asset contract."""

import logging
from typing import Optional, Union

from .contracts import ContractClient
from .events import EventDecoder
from .exceptions import OrchestrationError, ValidationError
from .types import ActionOutcome, ChapterDraft, TransactionResult, TxOptions
from .validation import validate_address, validate_token_id

logger = logging.getLogger(__name__)


def _outcome(asset: ContractClient, result: TransactionResult) -> ActionOutcome:
    events = EventDecoder(asset.descriptor, asset.address).decode(result)
    for event in events:
        logger.info("%s emitted %s %s", asset.name, event.name, event.fields)
    return ActionOutcome(transaction=result, events=events)


def check_platform_caller(asset: ContractClient) -> Optional[bool]:
    """
    Compare the client's signer against the contract's platform account.

    Best effort: a failing read is logged and reported as None.

    Returns:
        True/False when the platform address could be read, else None
    """
    try:
        platform = asset.query("platformAddress")
    except OrchestrationError as e:
        logger.warning("Could not read platform address of %s: %s", asset.name, e)
        return None

    signer = asset.signer
    if platform.lower() != signer.lower():
        logger.warning("Signer %s is not the platform account %s", signer, platform)
        return False
    return True


def mint(
    asset: ContractClient,
    to: str,
    token_id: Union[str, int],
    options: TxOptions,
    amount: Union[str, int] = 1,
) -> ActionOutcome:
    """
    Mint ``amount`` copies of ``token_id`` to ``to`` via freeMint.

    Raises:
        ValidationError: If an argument is malformed; nothing is submitted
    """
    to = validate_address(to, "recipient address")
    token_id = validate_token_id(token_id)
    amount = validate_token_id(amount, "amount")

    logger.info("Minting token %d x%d to %s", token_id, amount, to)
    result = asset.call("freeMint", [to, token_id, amount], options)
    return _outcome(asset, result)


def publish_chapter(asset: ContractClient, draft: ChapterDraft, options: TxOptions) -> ActionOutcome:
    """
    Publish a chapter via createChapter.

    Raises:
        ValidationError: If the creator address or copy count is malformed
    """
    validate_address(draft.creator, "creator address")
    validate_token_id(draft.max_copies, "max copies")
    if not draft.uri:
        raise ValidationError("Chapter URI must not be empty")

    logger.info("Publishing chapter '%s' for %s", draft.title_en, draft.creator)
    result = asset.call("createChapter", draft.as_args(), options)
    return _outcome(asset, result)


def register_investor(
    asset: ContractClient,
    investor: str,
    token_id: Union[str, int],
    options: TxOptions,
) -> ActionOutcome:
    """
    Register ``investor`` as holder of ``token_id`` via investorRegistration.

    Raises:
        ValidationError: If arguments are malformed or the investor holds
            none of the token; nothing is submitted
        QueryError: If the balance pre-check cannot be read
    """
    investor = validate_address(investor, "investor address")
    token_id = validate_token_id(token_id)

    balance = asset.query("balanceOf", [investor, token_id])
    logger.info("Investor %s holds %d of token %d", investor, balance, token_id)
    if balance == 0:
        raise ValidationError(f"Investor {investor} does not hold token {token_id}")

    result = asset.call("investorRegistration", [investor, token_id], options)
    return _outcome(asset, result)

"""Wallet Session Manager: challenge-response login producing a bearer token.

initiate → persist an unverified session with a 5 minute challenge
verify   → check the signature against the stored challenge, then consume
           the session exactly once and extend it to 24 hours
resolve  → decode a bearer token into (address, wallet type)
"""

import logging
from datetime import timedelta

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.pm_common.datetime_utils import utc_now
from src.pm_common.errors import (
    InvalidSignatureError,
    PersistenceError,
    SessionAlreadyUsedError,
    SessionExpiredError,
    SessionNotFoundError,
)
from src.pm_gateway.auth.jwt_handler import (
    WalletIdentity,
    create_wallet_token,
    decode_wallet_token,
)
from src.pm_wallet.application.schemas import (
    ConnectWalletResponse,
    SessionInfoResponse,
    VerifyWalletResponse,
)
from src.pm_wallet.domain.challenge import build_challenge, generate_nonce, normalize_address
from src.pm_wallet.domain.models import WalletSession
from src.pm_wallet.domain.repository import WalletSessionRepositoryProtocol
from src.pm_wallet.infrastructure.persistence import WalletSessionRepository
from src.pm_wallet.infrastructure.signature import SignatureVerifierRegistry

logger = logging.getLogger(__name__)


class WalletSessionService:
    def __init__(
        self,
        repo: WalletSessionRepositoryProtocol | None = None,
        verifiers: SignatureVerifierRegistry | None = None,
    ) -> None:
        self._repo: WalletSessionRepositoryProtocol = repo or WalletSessionRepository()
        self._verifiers = verifiers or SignatureVerifierRegistry()

    async def initiate(
        self, db: AsyncSession, wallet_address: str, wallet_type: str
    ) -> ConnectWalletResponse:
        now = utc_now()
        address = normalize_address(wallet_address, wallet_type)
        nonce = generate_nonce()
        pending = WalletSession(
            id="",
            wallet_address=address,
            wallet_type=wallet_type,
            challenge_message=build_challenge(address, nonce, now.isoformat()),
            nonce=nonce,
            expires_at=now + timedelta(seconds=settings.WALLET_CHALLENGE_TTL_SECONDS),
        )
        try:
            session = await self._repo.create(pending, db)
            await db.commit()
        except SQLAlchemyError:
            await db.rollback()
            logger.exception("wallet session insert failed for %s", address)
            raise PersistenceError("create wallet session") from None

        return ConnectWalletResponse(
            session_id=session.id,
            challenge=session.challenge_message,
            expires_at=session.expires_at.isoformat(),
        )

    async def verify(
        self, db: AsyncSession, session_id: str, signature: str
    ) -> VerifyWalletResponse:
        try:
            session = await self._repo.get_by_id(session_id, db)
        except SQLAlchemyError:
            await db.rollback()
            logger.exception("wallet session lookup failed: %s", session_id)
            raise PersistenceError("load wallet session") from None

        if session is None:
            raise SessionNotFoundError(session_id)
        now = utc_now()
        if session.is_verified:
            raise SessionAlreadyUsedError(session_id)
        if session.is_expired(now):
            raise SessionExpiredError(session_id)

        # A failed check leaves the session untouched so the wallet can retry
        # within the original challenge window.
        if not self._verifiers.verify(
            session.wallet_type,
            session.wallet_address,
            session.challenge_message,
            signature,
        ):
            logger.info("wallet signature rejected session=%s", session_id)
            raise InvalidSignatureError()

        token, expires_at = create_wallet_token(
            session.wallet_address, session.wallet_type, session.id
        )
        verified_at = utc_now()
        try:
            verified = await self._repo.mark_verified(
                session.id, signature, token, verified_at, expires_at, db
            )
            if verified is None:
                await db.rollback()
                # Lost the CAS: either another verify won or the window closed meanwhile
                current = await self._repo.get_by_id(session.id, db)
                if current is not None and not current.is_verified and current.is_expired(verified_at):
                    raise SessionExpiredError(session_id)
                raise SessionAlreadyUsedError(session_id)
            await db.commit()
        except SQLAlchemyError:
            await db.rollback()
            logger.exception("wallet session verify update failed: %s", session_id)
            raise PersistenceError("verify wallet session") from None

        logger.info("wallet session verified session=%s address=%s",
                    session.id, session.wallet_address)
        return VerifyWalletResponse(
            session_token=token,
            wallet_address=verified.wallet_address,
            wallet_type=verified.wallet_type,
            expires_at=expires_at.isoformat(),
        )

    def resolve(self, token: str) -> WalletIdentity:
        """Decode a bearer token. Raises InvalidTokenError on any failure."""
        return decode_wallet_token(token)

    def session_info(self, identity: WalletIdentity) -> SessionInfoResponse:
        return SessionInfoResponse(
            wallet_address=identity.address,
            wallet_type=identity.wallet_type,
            is_verified=True,
        )

"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Common / request validation
  2xxx: Wallet auth
  3xxx: Payment quotes
  4xxx: Bets
  5xxx: Orders
  9xxx: System

HTTP mapping: validation 400, auth 401, not found 404, conflict 409,
expired 410, rate limit 429, persistence 500.
"""


class AppError(Exception):
    """Base application error."""

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
        user_message: str | None = None,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        self.user_message = user_message or message
        super().__init__(message)


# --- 1xxx: Common ---

class ValidationError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(1001, detail, 400, "Invalid input data")


class NotFoundError(AppError):
    def __init__(self, detail: str = "Resource not found") -> None:
        super().__init__(1002, detail, 404, "Resource not found")


# --- 2xxx: Wallet auth ---

class UnauthorizedError(AppError):
    def __init__(self, detail: str = "Missing or invalid bearer token") -> None:
        super().__init__(2001, detail, 401, "Please connect your wallet again")


class InvalidTokenError(AppError):
    def __init__(self) -> None:
        super().__init__(2002, "Session token is invalid or expired", 401,
                         "Please connect your wallet again")


class SessionNotFoundError(AppError):
    def __init__(self, session_id: str) -> None:
        super().__init__(2003, f"Wallet session not found: {session_id}", 404,
                         "Login session not found, please reconnect")


class SessionExpiredError(AppError):
    def __init__(self, session_id: str) -> None:
        super().__init__(2004, f"Wallet session expired: {session_id}", 410,
                         "Login request expired, please reconnect")


class SessionAlreadyUsedError(AppError):
    def __init__(self, session_id: str) -> None:
        super().__init__(2005, f"Wallet session already verified: {session_id}", 409,
                         "This login request was already used")


class InvalidSignatureError(AppError):
    def __init__(self) -> None:
        super().__init__(2006, "Signature verification failed", 401,
                         "Signature does not match the wallet")


# --- 3xxx: Payment quotes ---

class QuoteNotFoundError(AppError):
    def __init__(self, quote_id: str) -> None:
        super().__init__(3001, f"Quote not found: {quote_id}", 404, "Quote not found")


class QuoteExpiredError(AppError):
    def __init__(self, quote_id: str) -> None:
        super().__init__(3002, f"Quote expired: {quote_id}", 410,
                         "Quote expired, please request a new quote")


class QuoteAlreadyPaidError(AppError):
    def __init__(self, quote_id: str) -> None:
        super().__init__(3003, f"Quote {quote_id} already paid with a different txHash", 409,
                         "Payment already recorded, check the quote status")


class TxHashAlreadyUsedError(AppError):
    def __init__(self, tx_hash: str) -> None:
        super().__init__(3004, f"txHash already used for another quote: {tx_hash}", 409,
                         "This transaction was already used for another payment")


class InvalidTxHashError(AppError):
    def __init__(self, tx_hash: str) -> None:
        super().__init__(3005, f"Invalid txHash format: {tx_hash}", 400,
                         "Invalid transaction hash")


class PaymentNotConfirmedError(AppError):
    def __init__(self, tx_hash: str) -> None:
        super().__init__(3006, f"Payment not confirmed for txHash: {tx_hash}", 402,
                         "Payment has not been confirmed yet")


# --- 4xxx: Bets ---

class BetAmountOutOfRangeError(AppError):
    def __init__(self, amount: object, minimum: object, maximum: object) -> None:
        super().__init__(
            4001,
            f"Bet amount must be between {minimum} and {maximum} USDC, got {amount}",
            400,
            f"Bet amount must be between {minimum} and {maximum} USDC",
        )


class PredictionNotFoundError(AppError):
    def __init__(self, prediction_id: str) -> None:
        super().__init__(4002, f"Prediction not found: {prediction_id}", 404,
                         "Prediction not found")


class BetNotFoundError(AppError):
    def __init__(self, bet_id: str) -> None:
        super().__init__(4003, f"Bet not found: {bet_id}", 404, "Bet not found")


class BetAlreadyProcessedError(AppError):
    def __init__(self, bet_id: str, payment_status: str) -> None:
        super().__init__(4004, f"Bet {bet_id} already processed ({payment_status})", 409,
                         "This bet was already processed")


class PaymentVerificationError(AppError):
    def __init__(self, reason: str) -> None:
        super().__init__(4005, f"Payment verification failed: {reason}", 400,
                         "Payment verification failed")


# --- 5xxx: Orders ---

class OrderQuoteMismatchError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(5001, f"Order does not match paid quote: {detail}", 400,
                         "Order does not match the paid quote")


class QuoteAlreadyUsedError(AppError):
    def __init__(self, quote_id: str) -> None:
        super().__init__(5002, f"Paid quote already used by another order: {quote_id}", 409,
                         "This payment was already used for an order")


# --- 9xxx: System ---

class RateLimitError(AppError):
    def __init__(self, retry_after: int = 60) -> None:
        super().__init__(9001, f"Too many requests, retry in {retry_after} seconds", 429,
                         "Too many requests, please try again later")
        self.retry_after = retry_after


class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500, "Internal server error, please try again later")


class PersistenceError(AppError):
    def __init__(self, operation: str) -> None:
        super().__init__(9003, f"Database operation failed: {operation}", 500,
                         "Internal server error, please try again later")

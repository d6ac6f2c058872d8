# app/core/exceptions.py

from fastapi import status


class LoyaltyError(Exception):
    """
    Базовая ошибка программы лояльности.
    `code` уходит клиенту как машиночитаемый ключ, `message` - как текст для UI.
    """
    code = "loyalty_error"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidAction(LoyaltyError):
    code = "invalid_action"
    status_code = status.HTTP_400_BAD_REQUEST


class RewardNotFound(LoyaltyError):
    code = "reward_not_found"
    status_code = status.HTTP_404_NOT_FOUND


class BalanceNotFound(LoyaltyError):
    code = "balance_not_found"
    status_code = status.HTTP_404_NOT_FOUND


class RedemptionNotFound(LoyaltyError):
    code = "redemption_not_found"
    status_code = status.HTTP_404_NOT_FOUND


class InvalidRedemptionState(LoyaltyError):
    code = "invalid_redemption_state"
    status_code = status.HTTP_409_CONFLICT


class PersistenceFailure(LoyaltyError):
    """Ошибка записи в БД. Детали только в логах, клиент видит общий текст."""
    code = "persistence_failure"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str = "The operation could not be completed. Please try again later."):
        super().__init__(message)


class RewardUnavailable(LoyaltyError):
    """Награда есть в каталоге, но ее reward_value не подходит к типу. Баллы не списываются."""
    code = "reward_unavailable"
    status_code = status.HTTP_409_CONFLICT

from mingree.models.user import User
from mingree.models.campaign import Campaign
from mingree.models.reservation import Reservation
from mingree.models.submission import Submission
from mingree.models.transaction import Transaction
from mingree.models.withdrawal import BankAccount, WithdrawalRequest
from mingree.models.notification import Notification
from mingree.models.category_subscription import CategorySubscription
from mingree.models.promo_code import PromoCode, PromoCodeUsage
from mingree.models.admin_wallet import AdminWallet, AdminTransaction
from mingree.models.app_setting import AppSetting
from mingree.models.subscription_plan import SubscriptionPlan

__all__ = [
    "User",
    "Campaign",
    "Reservation",
    "Submission",
    "Transaction",
    "BankAccount",
    "WithdrawalRequest",
    "Notification",
    "CategorySubscription",
    "PromoCode",
    "PromoCodeUsage",
    "AdminWallet",
    "AdminTransaction",
    "AppSetting",
    "SubscriptionPlan",
]

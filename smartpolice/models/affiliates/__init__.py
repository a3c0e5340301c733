from smartpolice.models.affiliates.affiliate import Affiliate
from smartpolice.models.affiliates.referral import Referral
from smartpolice.models.affiliates.payout import Payout

__all__ = ["Affiliate", "Referral", "Payout"]

"""Shared fixtures: a TokenTax CSV export covering every transaction type."""
import pytest

SAMPLE_CSV = """

Type,BuyAmount,BuyCurrency,SellAmount,SellCurrency,FeeAmount,FeeCurrency,Exchange,Group,Comment,Date
Deposit,5125,USD,,,,,binance.us,,,1970-01-01 00:00:00
Trade,1,ETH,3123.00,USD,0.00124,BNB,binance.us,,,1970-01-01 00:00:00
Trade,1,ETH,312.00,USD,0.00124,BNB,binance.us,margin,,1970-01-01 00:00:00
Income,0.001,BNB,,,,,binance.us,,"Referral Commission",1970-01-01 00:00:00
Withdrawal,,,100,USD,,,some bank,,"AccountId: 123456",1970-01-01 00:00:00
Spend,,,100,USD,0.01,USD,,,"Gift for wife",1970-01-01 00:00:00
Lost,,,1,ETH,,,,,"Wallet lost",1970-01-01 00:00:00
Stolen,,,1,USD,,,,,"Wallet hacked",1970-01-01 00:00:00
Mining,0.000002,ETH,,,,,binance.us,,"ETH2 validator reward",1970-01-01 00:00:00
Gift,,,100,USD,,,,,"Gift to friend",1970-01-01 00:00:00
"""


@pytest.fixture
def sample_csv() -> str:
    return SAMPLE_CSV

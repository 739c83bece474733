"""Shared enums and account model for the KIS quotation API."""

from enum import Enum

from pydantic import BaseModel, Field

REAL_ENDPOINT = "https://openapi.koreainvestment.com:9443"
VIRTUAL_ENDPOINT = "https://openapivts.koreainvestment.com:29443"


class Environment(str, Enum):
    REAL = "real"
    VIRTUAL = "virtual"

    @property
    def endpoint_url(self) -> str:
        if self is Environment.REAL:
            return REAL_ENDPOINT
        return VIRTUAL_ENDPOINT


class MarketCode(str, Enum):
    STOCK = "J"
    ELW = "W"


class PeriodCode(str, Enum):
    DAY = "D"
    WEEK = "W"
    MONTH = "M"
    YEAR = "Y"


class TrId(str, Enum):
    """Transaction id sent in the ``tr_id`` header, one per operation."""

    DAILY_PRICE = "FHKST01010400"
    PERIODIC_PRICE = "FHKST03010100"
    VOLUME_RANK = "FHPST01710000"


class Account(BaseModel):
    model_config = {"frozen": True}

    cano: str = Field(pattern=r"^\d{8}$")
    acnt_prdt_cd: str = Field(pattern=r"^\d{2}$")


class VolumeRankSort(str, Enum):
    """Ranking basis for the volume-rank screen (``FID_BLNG_CLS_CODE``)."""

    AVERAGE_VOLUME = "0"
    VOLUME_INCREASE_RATE = "1"
    AVERAGE_VOLUME_TURNOVER = "2"
    TRADING_VALUE = "3"
    AVERAGE_VALUE_TURNOVER = "4"


class ShareClass(str, Enum):
    ALL = "0"
    COMMON = "1"
    PREFERRED = "2"

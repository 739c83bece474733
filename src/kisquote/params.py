"""Query parameter sets for the quotation endpoints.

Each model owns its encoder. Key names and order follow the KIS API
documentation for the matching endpoint; keep them in sync by hand rather
than deriving them from field names.
"""

from datetime import date

from pydantic import BaseModel, Field, field_validator

from kisquote.types import MarketCode, PeriodCode, ShareClass, VolumeRankSort

SHORTCODE_PATTERN = r"^[0-9A-Z]{6,9}$"
DAY_PATTERN = r"^\d{8}$"


def _adjust_flag(is_adjust_price: bool) -> str:
    # FID_ORG_ADJ_PRC: 0 = adjusted price, 1 = original price
    return "0" if is_adjust_price else "1"


def _format_day(value: object) -> object:
    if isinstance(value, date):
        return value.strftime("%Y%m%d")
    return value


class DailyPriceParameter(BaseModel):
    model_config = {"frozen": True}

    market_code: MarketCode
    shortcode: str = Field(pattern=SHORTCODE_PATTERN)
    period_code: PeriodCode
    is_adjust_price: bool

    def into_pairs(self) -> list[tuple[str, str]]:
        return [
            ("FID_COND_MRKT_DIV_CODE", self.market_code.value),
            ("FID_INPUT_ISCD", self.shortcode),
            ("FID_PERIOD_DIV_CODE", self.period_code.value),
            ("FID_ORG_ADJ_PRC", _adjust_flag(self.is_adjust_price)),
        ]


class PeriodicPriceParameter(BaseModel):
    """Candles between two days (inclusive), at most 100 rows per call."""

    model_config = {"frozen": True}

    market_code: MarketCode
    shortcode: str = Field(pattern=SHORTCODE_PATTERN)
    start_day: str = Field(pattern=DAY_PATTERN)
    end_day: str = Field(pattern=DAY_PATTERN)
    period_code: PeriodCode
    is_adjust_price: bool

    @field_validator("start_day", "end_day", mode="before")
    @classmethod
    def format_days(cls, value: object) -> object:
        return _format_day(value)

    def into_pairs(self) -> list[tuple[str, str]]:
        return [
            ("FID_COND_MRKT_DIV_CODE", self.market_code.value),
            ("FID_INPUT_ISCD", self.shortcode),
            ("FID_INPUT_DATE_1", self.start_day),
            ("FID_INPUT_DATE_2", self.end_day),
            ("FID_PERIOD_DIV_CODE", self.period_code.value),
            ("FID_ORG_ADJ_PRC", _adjust_flag(self.is_adjust_price)),
        ]


class VolumeRankParameter(BaseModel):
    """Volume-rank screen filters. Defaults select every listed stock."""

    model_config = {"frozen": True}

    market_code: MarketCode = MarketCode.STOCK
    screen_code: str = "20171"
    # 0000 all, 0001 KOSPI, 1001 KOSDAQ, 2001 KOSPI200
    market_iscd: str = Field(default="0000", pattern=r"^\d{4}$")
    share_class: ShareClass = ShareClass.ALL
    sort: VolumeRankSort = VolumeRankSort.AVERAGE_VOLUME
    target_class: str = Field(default="111111111", pattern=r"^[01]{9}$")
    exclude_class: str = Field(default="000000", pattern=r"^[01]{6,10}$")
    min_price: int | None = Field(default=None, ge=0)
    max_price: int | None = Field(default=None, ge=0)
    min_volume: int | None = Field(default=None, ge=0)
    input_date: str | None = Field(default=None, pattern=DAY_PATTERN)

    @field_validator("input_date", mode="before")
    @classmethod
    def format_input_date(cls, value: object) -> object:
        return _format_day(value)

    def into_pairs(self) -> list[tuple[str, str]]:
        return [
            ("FID_COND_MRKT_DIV_CODE", self.market_code.value),
            ("FID_COND_SCR_DIV_CODE", self.screen_code),
            ("FID_INPUT_ISCD", self.market_iscd),
            ("FID_DIV_CLS_CODE", self.share_class.value),
            ("FID_BLNG_CLS_CODE", self.sort.value),
            ("FID_TRGT_CLS_CODE", self.target_class),
            ("FID_TRGT_EXLS_CLS_CODE", self.exclude_class),
            ("FID_INPUT_PRICE_1", _optional(self.min_price)),
            ("FID_INPUT_PRICE_2", _optional(self.max_price)),
            ("FID_VOL_CNT", _optional(self.min_volume)),
            ("FID_INPUT_DATE_1", self.input_date or ""),
        ]


def _optional(value: int | None) -> str:
    return "" if value is None else str(value)

"""Pydantic models for quotation response bodies.

KIS returns every numeric field as a string; values are kept as sent.
Fields not modelled here are preserved as extras.
"""

from pydantic import BaseModel, ConfigDict, field_validator


class KisModel(BaseModel):
    model_config = ConfigDict(extra="allow")


class KisResponse(KisModel):
    rt_cd: str
    msg_cd: str
    msg1: str

    @property
    def is_success(self) -> bool:
        return self.rt_cd == "0"


class DailyPriceItem(KisModel):
    stck_bsop_date: str
    stck_oprc: str
    stck_hgpr: str
    stck_lwpr: str
    stck_clpr: str
    acml_vol: str
    prdy_vrss: str | None = None
    prdy_vrss_sign: str | None = None
    prdy_ctrt: str | None = None
    hts_frgn_ehrt: str | None = None
    frgn_ntby_qty: str | None = None
    flng_cls_code: str | None = None
    acml_prtt_rate: str | None = None


class DailyPriceResponse(KisResponse):
    output: list[DailyPriceItem]


class PeriodicPriceSummary(KisModel):
    hts_kor_isnm: str | None = None
    stck_shrn_iscd: str | None = None
    stck_prpr: str | None = None
    prdy_vrss: str | None = None
    prdy_vrss_sign: str | None = None
    prdy_ctrt: str | None = None
    stck_prdy_clpr: str | None = None
    acml_vol: str | None = None
    acml_tr_pbmn: str | None = None
    stck_oprc: str | None = None
    stck_hgpr: str | None = None
    stck_lwpr: str | None = None
    per: str | None = None
    pbr: str | None = None
    eps: str | None = None
    hts_avls: str | None = None


class PeriodicPriceItem(KisModel):
    stck_bsop_date: str
    stck_clpr: str
    stck_oprc: str
    stck_hgpr: str
    stck_lwpr: str
    acml_vol: str
    acml_tr_pbmn: str | None = None
    flng_cls_code: str | None = None
    prtt_rate: str | None = None
    mod_yn: str | None = None
    prdy_vrss_sign: str | None = None
    prdy_vrss: str | None = None
    revl_issu_reas: str | None = None


class PeriodicPriceResponse(KisResponse):
    output1: PeriodicPriceSummary
    output2: list[PeriodicPriceItem]

    @field_validator("output2", mode="before")
    @classmethod
    def drop_blank_rows(cls, rows: object) -> object:
        # past the listing date KIS pads the page with empty dicts
        if isinstance(rows, list):
            return [r for r in rows if not (isinstance(r, dict) and not any(r.values()))]
        return rows


class VolumeRankItem(KisModel):
    hts_kor_isnm: str
    mksc_shrn_iscd: str
    data_rank: str
    stck_prpr: str
    acml_vol: str
    prdy_vrss_sign: str | None = None
    prdy_vrss: str | None = None
    prdy_ctrt: str | None = None
    prdy_vol: str | None = None
    lstn_stcn: str | None = None
    avrg_vol: str | None = None
    n_befr_clpr_vrss_prpr_rate: str | None = None
    vol_inrt: str | None = None
    vol_tnrt: str | None = None
    nday_vol_tnrt: str | None = None
    avrg_tr_pbmn: str | None = None
    tr_pbmn_tnrt: str | None = None
    nday_tr_pbmn_tnrt: str | None = None
    acml_tr_pbmn: str | None = None


class VolumeRankResponse(KisResponse):
    output: list[VolumeRankItem]

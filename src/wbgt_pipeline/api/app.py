"""WBGT パイプラインの結果を FastAPI で公開するモジュール。

地図フロントエンド（ブラウザ/JS）は `/api/wbgt` から GeoJSON と時刻配列を
JSON で受け取る。取り込みに失敗した場合も 200 で空の結果を返す。
"""

from __future__ import annotations

import json
from typing import Iterable, Optional

from fastapi import FastAPI, Query, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError

from wbgt_pipeline.app_container import build_wbgt_service
from wbgt_pipeline.domain.risk_levels import legend_items
from wbgt_pipeline.service.wbgt_service import WbgtDataService
from wbgt_pipeline.version import get_app_info

DEFAULT_ALLOW_ORIGINS: Iterable[str] = ("*",)
MAX_DAYS_BACK = 62


class WbgtQueryPayload(BaseModel):
    """`/api/wbgt` のクエリパラメータ。"""

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    days_back: Optional[int] = Field(
        None,
        ge=0,
        le=MAX_DAYS_BACK,
        validation_alias=AliasChoices("days_back", "daysBack"),
        description="何日前までの実況値を含めるか（省略時は設定値）。",
    )
    include_forecast: Optional[bool] = Field(
        None,
        validation_alias=AliasChoices("include_forecast", "includeForecast"),
        description="予測値を結合するか（省略時は設定値）。",
    )


def _json_response(content: object, status_code: int = 200) -> Response:
    """NaN 座標をそのまま通すため json.dumps で直接シリアライズする"""

    return Response(
        content=json.dumps(content, ensure_ascii=False),
        media_type="application/json",
        status_code=status_code,
    )


def create_app(
    *,
    service: Optional[WbgtDataService] = None,
    allow_origins: Optional[Iterable[str]] = None,
) -> FastAPI:
    """FastAPI アプリケーションを生成・設定します。"""

    app_info = get_app_info()
    app = FastAPI(
        title=app_info["name"],
        version=app_info["version"],
        description=app_info["description"],
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        openapi_url="/api/openapi.json",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(allow_origins or DEFAULT_ALLOW_ORIGINS),
        allow_credentials=False,
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    configured_service = service or build_wbgt_service()

    @app.get("/api/health", tags=["system"])
    def health_check() -> JSONResponse:
        """簡易ヘルスチェック。"""

        return JSONResponse(content={"status": "ok", "version": app_info["version"]})

    @app.get("/api/wbgt", tags=["wbgt"])
    def fetch_wbgt(
        days_back: Optional[int] = Query(None, alias="daysBack"),
        include_forecast: Optional[bool] = Query(None, alias="includeForecast"),
    ) -> Response:
        """地点ごとの GeoJSON と時刻配列。"""

        try:
            payload = WbgtQueryPayload(days_back=days_back, include_forecast=include_forecast)
        except ValidationError as exc:
            return _json_response(
                {"status": "error", "message": "クエリパラメータが不正です", "data": json.loads(exc.json())},
                status_code=422,
            )

        result = configured_service.fetch_wbgt_data(
            days_back=payload.days_back,
            include_forecast=payload.include_forecast,
        )
        return _json_response(result.to_dict())

    @app.get("/api/legend", tags=["wbgt"])
    def legend() -> JSONResponse:
        """危険度レベルの凡例。"""

        return JSONResponse(content=legend_items())

    return app


if __name__ == "__main__":  # pragma: no cover - manual entry point
    import uvicorn

    uvicorn.run(create_app(), host="0.0.0.0", port=8000)

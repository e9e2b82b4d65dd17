"""省市参考数据服务（EMSIFA 上游 + Redis 读穿缓存）"""

import json
import logging
from typing import Any, Callable, List, Optional

import requests
from pydantic import ValidationError
from redis import Redis
from redis.exceptions import RedisError

from app.core.config import settings
from app.core.exceptions import RegionNotFound, UpstreamError, UpstreamTimeout
from app.schemas.region import Province, Regency

logger = logging.getLogger(__name__)

DEFAULT_EMSIFA_BASE = "https://www.emsifa.com/api-wilayah-indonesia/api"
MAX_PAGE_LIMIT = 100


class RegionClient:
    """EMSIFA HTTP 客户端

    超时和非 2xx 响应会重试 retry 次；404 直接返回 RegionNotFound。
    """

    def __init__(
        self,
        base_url: str = settings.EMSIFA_BASE,
        timeout_ms: int = settings.HTTP_TIMEOUT_MS,
        retry: int = settings.HTTP_RETRY,
        session: Optional[requests.Session] = None,
    ):
        base_url = (base_url or "").strip() or DEFAULT_EMSIFA_BASE
        self.base_url = base_url.rstrip("/")
        self.timeout = (timeout_ms if timeout_ms > 0 else 5000) / 1000
        self.retry = max(retry, 0)
        self.session = session or requests.Session()

    def _get_json(self, path: str) -> Any:
        url = self.base_url + path
        attempts = self.retry + 1

        for attempt in range(1, attempts + 1):
            is_last = attempt == attempts
            try:
                response = self.session.get(url, timeout=self.timeout)
            except requests.Timeout as e:
                logger.warning(f"请求上游超时: {url} (第 {attempt}/{attempts} 次)")
                if not is_last:
                    continue
                raise UpstreamTimeout() from e
            except requests.RequestException as e:
                logger.error(f"请求上游失败: {url}, error={str(e)}")
                raise UpstreamError() from e

            if response.status_code == 404:
                raise RegionNotFound()
            if not 200 <= response.status_code < 300:
                logger.warning(
                    f"上游返回异常状态: {url} status={response.status_code} "
                    f"(第 {attempt}/{attempts} 次)"
                )
                if not is_last:
                    continue
                raise UpstreamError()

            try:
                return response.json()
            except ValueError as e:
                logger.error(f"上游响应不是合法 JSON: {url}")
                raise UpstreamError() from e

        raise UpstreamError()

    def list_provinces(self) -> List[Province]:
        return _parse_list(Province, self._get_json("/provinces.json"))

    def get_province(self, province_id: str) -> Province:
        return _parse(Province, self._get_json(f"/province/{province_id}.json"))

    def list_regencies(self, province_id: str) -> List[Regency]:
        return _parse_list(Regency, self._get_json(f"/regencies/{province_id}.json"))

    def get_regency(self, regency_id: str) -> Regency:
        return _parse(Regency, self._get_json(f"/regency/{regency_id}.json"))


def _parse(model, data):
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise UpstreamError("上游数据格式异常") from e


def _parse_list(model, data):
    if not isinstance(data, list):
        raise UpstreamError("上游数据格式异常")
    return [_parse(model, item) for item in data]


class RegionService:
    """省市查询服务类（带缓存）"""

    def __init__(
        self,
        client: RegionClient,
        redis: Optional[Redis] = None,
        ttl: int = settings.CACHE_TTL_SECONDS,
    ):
        self.client = client
        self.redis = redis
        self.ttl = ttl

    def _cached(self, key: str, loader: Callable[[], Any]) -> Any:
        """读穿缓存，缓存的是 JSON 序列化后的原始数据"""
        use_cache = self.redis is not None and self.ttl > 0

        if use_cache:
            try:
                cached = self.redis.get(key)
            except RedisError as e:
                logger.warning(f"读取缓存失败: {key}, error={str(e)}")
                cached = None
            if cached is not None:
                logger.debug(f"Cache hit for {key}")
                return json.loads(cached)

        data = loader()

        if use_cache:
            try:
                self.redis.setex(key, self.ttl, json.dumps(data, ensure_ascii=False))
                logger.debug(f"Cache set for {key}")
            except RedisError as e:
                logger.warning(f"写入缓存失败: {key}, error={str(e)}")

        return data

    def _all_provinces(self) -> List[Province]:
        data = self._cached(
            "region:provinces",
            lambda: [p.model_dump() for p in self.client.list_provinces()],
        )
        return [Province.model_validate(p) for p in data]

    def list_provinces(self, search: str = "", limit: int = 0, page: int = 1) -> List[Province]:
        """查询省份列表

        search 为不区分大小写的子串匹配；limit 为 0 表示不分页，最大 100。
        """
        items = self._all_provinces()

        keyword = (search or "").strip().lower()
        if keyword:
            items = [p for p in items if keyword in p.name.lower()]

        if limit <= 0:
            return items
        limit = min(limit, MAX_PAGE_LIMIT)
        page = max(page, 1)
        offset = (page - 1) * limit
        return items[offset:offset + limit]

    def list_cities(self, province_id: str) -> List[Regency]:
        data = self._cached(
            f"region:cities:{province_id}",
            lambda: [r.model_dump() for r in self.client.list_regencies(province_id)],
        )
        return [Regency.model_validate(r) for r in data]

    def detail_province(self, province_id: str) -> Province:
        data = self._cached(
            f"region:province:{province_id}",
            lambda: self.client.get_province(province_id).model_dump(),
        )
        return Province.model_validate(data)

    def detail_city(self, city_id: str) -> Regency:
        data = self._cached(
            f"region:city:{city_id}",
            lambda: self.client.get_regency(city_id).model_dump(),
        )
        return Regency.model_validate(data)

    def warm_cache(self) -> int:
        """预热省份及其城市缓存，返回处理的省份数量"""
        provinces = self._all_provinces()
        for province in provinces:
            self.list_cities(province.id)
        logger.info(f"地区缓存预热完成: {len(provinces)} 个省份")
        return len(provinces)

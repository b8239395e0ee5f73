"""Hevy fitness API client.

API docs: https://api.hevyapp.com/docs/
Auth: `api-key` header with the account's developer key.
"""
import asyncio
from typing import Any, Dict, Optional

import httpx

from core.exceptions import UpstreamError
from core.logger import get_logger

logger = get_logger("hevy")

PROVIDER = "hevy"
CONNECT_URL = "https://hevy.com/settings?developer"


def compute_volume_kg(workout: Optional[Dict[str, Any]]) -> float:
    """Total training volume: sum of weight_kg * reps over every set of every exercise."""
    if not workout or not isinstance(workout.get("exercises"), list):
        return 0
    total = 0
    for exercise in workout["exercises"]:
        for workout_set in (exercise or {}).get("sets") or []:
            weight = (workout_set or {}).get("weight_kg") or 0
            reps = (workout_set or {}).get("reps") or 0
            total += float(weight) * float(reps)
    return total


def summarize_workout(workout: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if not workout:
        return None
    exercises = workout.get("exercises")
    return {
        "id": workout.get("id"),
        "title": workout.get("title"),
        "start_time": workout.get("start_time") or workout.get("created_at"),
        "exercise_count": len(exercises) if isinstance(exercises, list) else 0,
        "volume_kg": compute_volume_kg(workout),
    }


class HevyClient:
    def __init__(
        self,
        api_key: str,
        base_url: str,
        timeout_seconds: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self.transport = transport

    async def get(self, client: httpx.AsyncClient, path: str) -> Dict[str, Any]:
        response = await client.get(f"{self.base_url}{path}", headers={"api-key": self.api_key})
        if response.status_code >= 400:
            raise UpstreamError(
                f"Hevy {path} failed ({response.status_code}): {response.text}",
                provider=PROVIDER,
                endpoint=path,
            )
        return response.json()

    async def fetch_summary(self) -> Dict[str, Any]:
        """
        并发请求用户信息、训练次数和最近一次训练；任一失败则整体失败。

        Raises:
            UpstreamError: key 未配置或 Hevy 返回非 2xx
            httpx.HTTPError: 网络层错误
        """
        if not self.api_key:
            raise UpstreamError("HEVY_API_KEY is not configured", provider=PROVIDER)

        async with httpx.AsyncClient(timeout=self.timeout_seconds, transport=self.transport) as client:
            user_info, count_info, workouts_info = await asyncio.gather(
                self.get(client, "/v1/user/info"),
                self.get(client, "/v1/workouts/count"),
                self.get(client, "/v1/workouts?page=1&pageSize=1"),
            )

        workouts = (workouts_info or {}).get("workouts") or []
        return {
            "connected": True,
            "user": (user_info or {}).get("data"),
            "workoutCount": (count_info or {}).get("workout_count") or 0,
            "lastWorkout": summarize_workout(workouts[0] if workouts else None),
        }

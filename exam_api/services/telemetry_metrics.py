# exam_api/services/telemetry_metrics.py
"""
문항별 행동 지표 집계 (순수 함수).

이벤트 전체를 server_time 순으로 다시 훑어서 매번 처음부터 계산한다.
같은 이벤트 집합이면 언제 다시 계산해도 같은 값이 나온다.

- observed_seconds: VIEW ~ HIDE 구간 합. 닫히지 않은 마지막 VIEW 는
  "현재 시각"이 아니라 마지막 이벤트 시각에서 닫는다.
- active_seconds: ANSWER_SELECT / IDLE_END 마다 [t, t + IDLE_TIMEOUT) 구간을 만들고
  겹치는 구간은 한 번만 센다 (연속 클릭 중복 집계 방지).
  IDLE_START 는 열려 있는 구간을 그 시각으로 잘라낸다.
- view_count / answer_change_count: VIEW / ANSWER_SELECT 개수
분석용 참고 지표일 뿐 채점/감독 판단에는 쓰지 않는다.
"""
import math
from dataclasses import asdict, dataclass
from datetime import datetime, timedelta
from typing import Iterable, Optional

from exam_api.models.enums import TelemetryEventType

# 클라이언트 idle 감지기와 서버 집계가 공유하는 값 (스냅샷 API 로 클라이언트에 내려준다)
IDLE_TIMEOUT_SECONDS = 15


@dataclass(frozen=True)
class TelemetryEvent:
    event_type: TelemetryEventType
    server_time: datetime


@dataclass
class AttemptItemMetrics:
    observed_seconds: int = 0
    active_seconds: int = 0
    view_count: int = 0
    answer_change_count: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


def diff_seconds(start: datetime, end: datetime) -> int:
    return max(0, math.floor((end - start).total_seconds()))


def compute_attempt_item_metrics(
    events: Iterable[TelemetryEvent],
    idle_timeout_seconds: int = IDLE_TIMEOUT_SECONDS,
) -> AttemptItemMetrics:
    ordered = sorted(events, key=lambda e: e.server_time)  # stable: 동시각은 입력 순서 유지
    metrics = AttemptItemMetrics()
    if not ordered:
        return metrics

    window = timedelta(seconds=idle_timeout_seconds)
    view_started_at: Optional[datetime] = None
    active_end: Optional[datetime] = None

    for event in ordered:
        t = event.server_time
        kind = TelemetryEventType(event.event_type)

        if kind == TelemetryEventType.VIEW:
            metrics.view_count += 1
            if view_started_at is None:
                view_started_at = t

        elif kind == TelemetryEventType.HIDE:
            if view_started_at is not None:
                metrics.observed_seconds += diff_seconds(view_started_at, t)
                view_started_at = None

        elif kind in (TelemetryEventType.ANSWER_SELECT, TelemetryEventType.IDLE_END):
            if kind == TelemetryEventType.ANSWER_SELECT:
                metrics.answer_change_count += 1
            window_end = t + window
            if active_end is None or t >= active_end:
                metrics.active_seconds += diff_seconds(t, window_end)
                active_end = window_end
            elif window_end > active_end:
                # 겹치는 부분은 빼고 늘어난 만큼만 더한다
                metrics.active_seconds += diff_seconds(active_end, window_end)
                active_end = window_end

        elif kind == TelemetryEventType.IDLE_START:
            if active_end is not None and t < active_end:
                metrics.active_seconds -= diff_seconds(t, active_end)
                active_end = t

        # VISIBILITY_* / HEARTBEAT 는 저장만 하고 집계에는 쓰지 않음

    if view_started_at is not None:
        metrics.observed_seconds += diff_seconds(view_started_at, ordered[-1].server_time)

    return metrics

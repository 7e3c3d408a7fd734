from pydantic import BaseModel, ConfigDict
from typing import Any, Optional

# Request bodies accepted by the match proxy.
# user_id is checked by the gateway (400), not by pydantic (422).


class UpdateUserRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    user_id: Optional[Any] = None
    industry: Optional[Any] = None
    domains: Optional[Any] = None
    details: Optional[Any] = None
    links: Optional[Any] = None


class MatchResultsRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    user_id: Optional[Any] = None
    offset: Any = 0
    limit: Any = 10
    domain: Optional[Any] = ""


class RecommendedResultsRequest(MatchResultsRequest):
    limit: Any = 5


class StatisticsRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    user_id: Optional[Any] = None

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from cryptoacademy.core.security import get_current_user
from cryptoacademy.db.session import get_db
from cryptoacademy.models.user import User
from cryptoacademy.schemas.metrics import UserMetricsResponse
from cryptoacademy.services.metrics import MetricsService

router = APIRouter(prefix="/api/user", tags=["metrics"])


@router.get("/metrics", response_model=UserMetricsResponse)
def user_metrics(db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    return MetricsService(db).user_metrics(user)

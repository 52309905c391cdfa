"""Settings API endpoints for the versioning policy."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..database import get_db
from ..schemas.settings import LocalePolicy, VersioningPolicy, VersioningPolicyUpdate
from ..services import VersioningPolicyProvider

router = APIRouter(prefix="/api/settings", tags=["settings"])


@router.get("/versioning", response_model=VersioningPolicy)
def get_versioning_policy(db: Session = Depends(get_db)):
    return VersioningPolicyProvider(db).get_policy()


@router.put("/versioning", response_model=VersioningPolicy)
def update_versioning_policy(update: VersioningPolicyUpdate, db: Session = Depends(get_db)):
    """Change versioning settings; applies to the next operation."""
    return VersioningPolicyProvider(db).update_policy(update)


@router.get("/locales", response_model=LocalePolicy)
def get_locale_policy(db: Session = Depends(get_db)):
    return VersioningPolicyProvider(db).get_locale_policy()

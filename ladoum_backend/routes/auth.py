from fastapi import APIRouter
from .. import config
from ..models import ValidateKeyBody

router = APIRouter()

@router.post("/validate-key")
def validate_key(body: ValidateKeyBody):
    valid = body.key in config.VALID_KEYS
    return {"valid": valid}

from fastapi import APIRouter
from .auth_routes import router as auth_router
from .profile_routes import router as profile_router
from .hospital_routes import router as hospital_router
from .request_routes import router as request_router, verify_router
from .donation_routes import router as donation_router
from .donor_routes import router as donor_router
from .notification_routes import router as notification_router
from .analytics_routes import router as analytics_router
from .setup_routes import router as setup_router


router = APIRouter()

router.include_router(auth_router)
router.include_router(profile_router)
router.include_router(hospital_router)
router.include_router(request_router)
router.include_router(verify_router)
router.include_router(donation_router)
router.include_router(donor_router)
router.include_router(notification_router)
router.include_router(analytics_router)
router.include_router(setup_router)

from .user_model import User
from .hospital_model import Hospital
from .profile_model import Profile
from .request_model import BloodRequest
from .donation_model import Donation
from .kv_store_model import KeyValue

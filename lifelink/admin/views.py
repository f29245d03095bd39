from sqladmin import ModelView

from lifelink.models import BloodRequest, Donation, Hospital, Profile


class ProfileAdmin(ModelView, model=Profile):
    icon = "fa-solid fa-user"
    name = "Profile"
    name_plural = "Profiles"

    column_list = [
        Profile.id,
        Profile.full_name,
        Profile.email,
        Profile.blood_group,
        Profile.availability_status,
        Profile.profile_complete,
        Profile.role,
        "hospital",
        Profile.created_at,
    ]
    column_searchable_list = [Profile.full_name, Profile.email]
    column_sortable_list = [Profile.created_at, Profile.role]
    form_columns = [
        Profile.full_name,
        Profile.phone_number,
        Profile.blood_group,
        Profile.availability_status,
        Profile.role,
        "hospital",
    ]
    column_labels = {"hospital": "Hospital"}
    column_formatters = {
        "hospital": lambda m, a: m.hospital.name if m.hospital else "N/A"
    }

    # Accounts are removed through the API so the login row goes too
    can_create = False
    can_delete = False


class HospitalAdmin(ModelView, model=Hospital):
    icon = "fa-solid fa-hospital"
    name = "Hospital"
    name_plural = "Hospitals"

    column_list = [
        Hospital.id,
        Hospital.name,
        Hospital.license_number,
        Hospital.contact_person_name,
        Hospital.contact_info,
        Hospital.status,
        Hospital.application_date,
    ]
    column_searchable_list = [Hospital.name, Hospital.license_number]
    column_sortable_list = [Hospital.application_date, Hospital.status]
    form_columns = [
        Hospital.name,
        Hospital.address,
        Hospital.contact_person_name,
        Hospital.contact_info,
        Hospital.license_number,
        Hospital.status,
    ]


class BloodRequestAdmin(ModelView, model=BloodRequest):
    icon = "fa-solid fa-droplet"
    name = "Blood Request"
    name_plural = "Blood Requests"

    column_list = [
        BloodRequest.id,
        BloodRequest.patient_name,
        BloodRequest.blood_group_needed,
        BloodRequest.urgency,
        BloodRequest.status,
        "hospital",
        BloodRequest.created_at,
    ]
    column_sortable_list = [BloodRequest.created_at, BloodRequest.urgency]
    column_formatters = {"hospital": lambda m, a: m.hospital.name if m.hospital else "N/A"}
    can_create = False


class DonationAdmin(ModelView, model=Donation):
    icon = "fa-solid fa-hand-holding-medical"
    name = "Donation"
    name_plural = "Donations"

    column_list = [
        Donation.id,
        "donor",
        "hospital",
        Donation.donation_date,
        Donation.request_id,
    ]
    column_formatters = {
        "donor": lambda m, a: m.donor.full_name if m.donor else "N/A",
        "hospital": lambda m, a: m.hospital.name if m.hospital else "N/A",
    }
    can_create = False
    can_edit = False


ADMIN_VIEWS = (ProfileAdmin, HospitalAdmin, BloodRequestAdmin, DonationAdmin)

"""
Integration tests for Chanjo.
"""

import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

import pytest
from datetime import date, timedelta


class TestModels:
    """Test data models."""

    def test_vaccine_code_normalized(self):
        from chanjo.models import RecommendedAge, VaccineDefinition

        vaccine = VaccineDefinition(name="BCG", code=" bcg ", recommended_age=RecommendedAge())
        assert vaccine.code == "BCG"
        assert vaccine.id  # generated
        assert vaccine.total_doses == 1

    def test_recommended_age_text(self):
        from chanjo.models import RecommendedAge

        assert str(RecommendedAge()) == "At birth"
        assert "9" in str(RecommendedAge(months=9))
        assert "6" in str(RecommendedAge(weeks=6))

    def test_negative_age_rejected(self):
        from chanjo.models import RecommendedAge

        with pytest.raises(ValueError):
            RecommendedAge(months=-1)

    def test_child_validation(self):
        from chanjo.models import Child, ChildVaccinationStatus, Gender

        child = Child(name="Amani", date_of_birth=date(2024, 1, 1), gender=Gender.FEMALE)
        assert child.vaccination_status == ChildVaccinationStatus.NOT_STARTED
        assert child.age_in_months >= 0

        with pytest.raises(ValueError):
            Child(name="Amani", date_of_birth=date.today() + timedelta(days=1))
        with pytest.raises(ValueError):
            Child(name="", date_of_birth=date(2024, 1, 1))
        with pytest.raises(ValueError):
            Child(name="Amani", date_of_birth=date(2024, 1, 1), birth_weight=9.0)

    def test_record_sequence_starts_at_one(self):
        from chanjo.models import VaccinationRecord

        with pytest.raises(ValueError):
            VaccinationRecord(child_id="c1", vaccine_id="BCG", dose_sequence=0, date_given=date(2024, 1, 1))


class TestBundledSchedule:
    """Test the bundled KEPI schedule."""

    def test_available(self):
        from knowledge.schedules import available_schedules

        assert "kepi" in available_schedules()

    def test_catalog_loads(self):
        from knowledge.schedules import load_catalog

        catalog = load_catalog("kepi")
        by_code = {v.code: v for v in catalog}

        assert set(by_code) == {"BCG", "OPV", "PENTA", "PCV", "ROTA", "IPV", "MR", "YF"}
        assert by_code["BCG"].due_at_birth
        assert by_code["PENTA"].total_doses == 3
        assert by_code["PENTA"].booster_for(3).recommended_age.weeks == 14
        assert by_code["OPV"].total_doses == 4
        assert by_code["MR"].booster_for(2).recommended_age.months == 18

    def test_catalog_sorted_by_months(self):
        from knowledge.schedules import load_catalog

        months = [v.recommended_age.months for v in load_catalog()]
        assert months == sorted(months)

    def test_fresh_models_each_call(self):
        from knowledge.schedules import load_catalog

        first = load_catalog()
        second = load_catalog()
        assert first == second
        assert first[0] is not second[0]

    def test_unknown_schedule(self):
        from knowledge.schedules import load_catalog

        with pytest.raises(ValueError, match="Unknown schedule"):
            load_catalog("atlantis")


class TestEndToEnd:
    """A child followed through the first months on the bundled schedule."""

    def _service(self, store):
        from chanjo.config import Settings
        from chanjo.services import ImmunizationService

        return ImmunizationService(store, store, children=store, writer=store, settings=Settings())

    def test_newborn_then_six_week_visit(self):
        from knowledge.schedules import load_catalog
        from chanjo.db import InMemoryStore
        from chanjo.models import Child, ChildVaccinationStatus, ScheduleStatus, VaccinationRecord

        dob = date(2024, 1, 1)
        store = InMemoryStore(load_catalog(), [Child(id="baby", name="Baraka", date_of_birth=dob)])
        service = self._service(store)

        # Day of birth: BCG and OPV due today
        schedule = service.schedule_for_child("baby", today=dob)
        due_today = [d.vaccine_id for d in schedule.due_doses if d.days_left == 0]
        assert due_today == ["BCG", "OPV"]
        assert schedule.status == ScheduleStatus.UP_TO_DATE
        assert service.refresh_status("baby", today=dob) == ChildVaccinationStatus.NOT_STARTED

        for code in ("BCG", "OPV"):
            store.add_record(VaccinationRecord(child_id="baby", vaccine_id=code, dose_sequence=1, date_given=dob))

        # Six weeks later: OPV 2 and the first of the 6-week vaccines
        six_weeks = dob + timedelta(weeks=6)
        schedule = service.schedule_for_child("baby", today=six_weeks)
        due_now = {(d.vaccine_id, d.dose_sequence) for d in schedule.due_doses if d.due_date == six_weeks}
        assert due_now == {("OPV", 2), ("PENTA", 1), ("PCV", 1), ("ROTA", 1)}
        assert "BCG" not in [d.vaccine_id for d in schedule.due_doses]
        assert service.refresh_status("baby", today=six_weeks) == ChildVaccinationStatus.UP_TO_DATE

        # Missed visit: three weeks later the child is behind
        late = six_weeks + timedelta(weeks=3)
        assert service.refresh_status("baby", today=late) == ChildVaccinationStatus.BEHIND
        assert store.get_child("baby").vaccination_status == ChildVaccinationStatus.BEHIND


if __name__ == "__main__":
    pytest.main([__file__, "-v"])

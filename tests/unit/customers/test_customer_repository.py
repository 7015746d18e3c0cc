from __future__ import annotations

from uuid import uuid4

import pytest
from django.core.exceptions import ValidationError

from modules.customers.models import Customer
from modules.customers.repositories.django_repository import CustomerDjangoRepository

pytestmark = pytest.mark.unit


@pytest.fixture()
def repo():
    return CustomerDjangoRepository()


class TestCustomerModel:
    def test_phone_is_stored_as_ten_digits(self):
        customer = Customer.objects.create(
            name="Ravi", email="ravi@example.in", phone="+91 98450 12345"
        )
        assert customer.phone == "9845012345"

    def test_email_is_lowercased(self):
        customer = Customer.objects.create(name="Meera", email="Meera@Example.IN")
        assert customer.email == "meera@example.in"

    def test_invalid_mobile_fails_validation(self):
        customer = Customer(name="X", email="x@example.in", phone="12345")
        with pytest.raises(ValidationError):
            customer.clean()

    def test_str_masks_phone(self, customer):
        assert str(customer) == "Asha Rao (***3210)"
        assert "9876543210" not in str(customer)


class TestCustomerRepository:
    def test_get_by_id(self, repo, customer):
        assert repo.get_by_id(str(customer.id)) == customer
        assert repo.get_by_id("garbage") is None
        assert repo.get_by_id(str(uuid4())) is None

    def test_get_by_email_is_case_insensitive(self, repo, customer):
        assert repo.get_by_email(" ASHA@example.in ") == customer

    def test_list_with_filters(self, repo, customer, inactive_customer):
        assert list(repo.list({"is_active": False})) == [inactive_customer]

    def test_save_and_soft_delete(self, repo):
        customer = repo.save(Customer(name="New", email="new@example.in"))

        assert repo.delete(str(customer.id)) is True
        assert repo.get_by_id(str(customer.id)) is None
        assert repo.get_by_email("new@example.in") is None
        assert repo.delete(str(customer.id)) is False

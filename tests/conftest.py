import pytest

from models import Client, PortfolioCompany


@pytest.fixture
def clients():
    return [Client(name="Wiz"), Client(name="monday.com")]


@pytest.fixture
def portfolio():
    return [PortfolioCompany(name="Wiz Inc."), PortfolioCompany(name="Monday Ltd")]

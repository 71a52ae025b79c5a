"""Persistence layer for loan simulations.

Each simulation is stored with its validated inputs, the cached indicators
and its amortization schedule, one row per period. Schedule rows carry an
explicit ``period`` column and are always read back ordered by it. The store
defaults to SQLite for local development, but accepts any
SQLAlchemy-compatible URL (e.g. PostgreSQL/MySQL).
"""

from __future__ import annotations

import json
import logging
import math
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Tuple
from uuid import uuid4

from sqlalchemy import (
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    create_engine,
    func,
    select,
)
from sqlalchemy.orm import declarative_base, relationship, selectinload, sessionmaker

from mortgage_calc.data_models import CalculationInput, IndicatorSummary, ScheduleEntry
from mortgage_calc.exceptions import SimulationNotFound
from mortgage_calc.serialization import input_to_dict

logger = logging.getLogger(__name__)

Base = declarative_base()


class LoanSimulationModel(Base):
    __tablename__ = "loan_simulations"

    id = Column(String(32), primary_key=True)
    client_id = Column(String(64), index=True, nullable=True)
    property_id = Column(String(64), nullable=True)
    bank_id = Column(Integer, nullable=True)
    principal = Column(Float, nullable=False)
    currency = Column(String(3), nullable=False)
    term_months = Column(Integer, nullable=False)
    input_json = Column(Text, nullable=False)
    tem = Column(Float, nullable=False)
    monthly_payment = Column(Float, nullable=False)
    tcea = Column(Float, nullable=False)
    van = Column(Float, nullable=False)
    tir = Column(Float, nullable=False)
    total_interest = Column(Float, nullable=False)
    total_cost = Column(Float, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    items = relationship(
        "AmortizationItemModel",
        back_populates="simulation",
        cascade="all, delete-orphan",
        order_by="AmortizationItemModel.period",
    )


class AmortizationItemModel(Base):
    __tablename__ = "amortization_items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    simulation_id = Column(
        String(32), ForeignKey("loan_simulations.id", ondelete="CASCADE"), index=True, nullable=False
    )
    period = Column(Integer, nullable=False)
    due_date = Column(Date, nullable=False)
    opening_balance = Column(Float, nullable=False)
    interest = Column(Float, nullable=False)
    principal = Column(Float, nullable=False)
    installment = Column(Float, nullable=False)
    life_insurance = Column(Float, nullable=False)
    risk_insurance = Column(Float, nullable=False)
    fees = Column(Float, nullable=False)
    closing_balance = Column(Float, nullable=False)

    simulation = relationship("LoanSimulationModel", back_populates="items")


class SimulationStore:
    """Database-backed simulation store."""

    def __init__(self, url: str) -> None:
        self._engine = create_engine(url, future=True)
        Base.metadata.create_all(self._engine)
        self._session_factory = sessionmaker(self._engine, expire_on_commit=False, future=True)

    def add_simulation(
        self,
        config: CalculationInput,
        summary: IndicatorSummary,
        schedule: Iterable[ScheduleEntry],
        *,
        client_id: Optional[str] = None,
        property_id: Optional[str] = None,
        bank_id: Optional[int] = None,
    ) -> Dict[str, Any]:
        """Persist a calculated simulation and return it as a dict."""
        row = LoanSimulationModel(
            id=uuid4().hex,
            client_id=client_id,
            property_id=property_id,
            bank_id=bank_id,
            principal=float(config.principal),
            currency=config.currency.value,
            term_months=config.term_months,
            input_json=json.dumps(input_to_dict(config)),
            tem=float(summary.monthly_rate),
            monthly_payment=float(summary.monthly_payment),
            tcea=float(summary.tcea),
            van=float(summary.npv),
            tir=float(summary.irr),
            total_interest=float(summary.total_interest),
            total_cost=float(summary.total_cost),
            created_at=datetime.utcnow(),
        )
        row.items = [
            AmortizationItemModel(
                period=e.period,
                due_date=e.due_date,
                opening_balance=float(e.opening_balance),
                interest=float(e.interest),
                principal=float(e.principal),
                installment=float(e.installment),
                life_insurance=float(e.life_insurance),
                risk_insurance=float(e.risk_insurance),
                fees=float(e.fees),
                closing_balance=float(e.closing_balance),
            )
            for e in schedule
        ]
        with self._session_factory() as session:
            session.add(row)
            session.commit()
            logger.info("Stored simulation %s with %d periods", row.id, len(row.items))
            return self._to_dict(row, include_schedule=True)

    def get_simulation(self, simulation_id: str) -> Dict[str, Any]:
        with self._session_factory() as session:
            row = session.execute(
                select(LoanSimulationModel)
                .options(selectinload(LoanSimulationModel.items))
                .where(LoanSimulationModel.id == simulation_id)
            ).scalar_one_or_none()
            if row is None:
                raise SimulationNotFound(simulation_id)
            return self._to_dict(row, include_schedule=True)

    def list_simulations(
        self, client_id: Optional[str] = None, page: int = 1, page_size: int = 10
    ) -> Tuple[List[Dict[str, Any]], Dict[str, int]]:
        """Return one page of simulations, newest first, and the pagination info."""
        page = max(page, 1)
        page_size = max(page_size, 1)
        query = select(LoanSimulationModel)
        count_query = select(func.count()).select_from(LoanSimulationModel)
        if client_id:
            query = query.where(LoanSimulationModel.client_id == client_id)
            count_query = count_query.where(LoanSimulationModel.client_id == client_id)
        with self._session_factory() as session:
            total = session.execute(count_query).scalar_one()
            rows = session.execute(
                query.order_by(LoanSimulationModel.created_at.desc())
                .offset((page - 1) * page_size)
                .limit(page_size)
            ).scalars().all()
            data = [self._to_summary_dict(row) for row in rows]
        pagination = {
            "page": page,
            "pageSize": page_size,
            "total": total,
            "totalPages": math.ceil(total / page_size),
        }
        return data, pagination

    def delete_simulation(self, simulation_id: str) -> None:
        with self._session_factory() as session:
            row = session.get(LoanSimulationModel, simulation_id)
            if row is None:
                raise SimulationNotFound(simulation_id)
            session.delete(row)
            session.commit()
        logger.info("Deleted simulation %s", simulation_id)

    @staticmethod
    def _to_summary_dict(row: LoanSimulationModel) -> Dict[str, Any]:
        return {
            "id": row.id,
            "clientId": row.client_id,
            "propertyId": row.property_id,
            "principal": row.principal,
            "currency": row.currency,
            "termMonths": row.term_months,
            "tem": row.tem,
            "monthlyPayment": row.monthly_payment,
            "createdAtUtc": row.created_at.isoformat(),
        }

    @staticmethod
    def _to_dict(row: LoanSimulationModel, include_schedule: bool = False) -> Dict[str, Any]:
        data = {
            "id": row.id,
            "clientId": row.client_id,
            "propertyId": row.property_id,
            "bankId": row.bank_id,
            "input": json.loads(row.input_json),
            "summary": {
                "tem": row.tem,
                "monthlyPayment": row.monthly_payment,
                "tcea": row.tcea,
                "van": row.van,
                "tir": row.tir,
                "totalInterest": row.total_interest,
                "totalCost": row.total_cost,
            },
            "createdAtUtc": row.created_at.isoformat(),
        }
        if include_schedule:
            data["amortizationSchedule"] = [
                {
                    "period": item.period,
                    "dueDate": item.due_date.isoformat(),
                    "openingBalance": item.opening_balance,
                    "interest": item.interest,
                    "principal": item.principal,
                    "installment": item.installment,
                    "lifeInsurance": item.life_insurance,
                    "riskInsurance": item.risk_insurance,
                    "fees": item.fees,
                    "closingBalance": item.closing_balance,
                }
                for item in sorted(row.items, key=lambda item: item.period)
            ]
        return data


def create_store_from_env(url: Optional[str]) -> SimulationStore:
    return SimulationStore(url or "sqlite:///simulations.sqlite3")

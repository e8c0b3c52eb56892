import asyncio
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from app.models.database import Payment, Subscription


class StoreError(Exception):
    pass


class AlreadySubscribed(StoreError):
    pass


class PaymentStore:
    """
    Persistence for payments and newsletter subscriptions.
    Sessions are synchronous; every public method runs its unit of work in a thread.
    """

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    async def _run(self, fn, *args):
        try:
            return await asyncio.to_thread(fn, *args)
        except StoreError:
            raise
        except SQLAlchemyError as e:
            raise StoreError(str(e)) from e

    # Payments

    async def insert_payment(self, fields: dict) -> dict:
        return await self._run(self._insert_payment, fields)

    def _insert_payment(self, fields: dict) -> dict:
        with self.session_factory() as db:
            payment = Payment(**fields)
            db.add(payment)
            db.commit()
            db.refresh(payment)
            return payment.to_dict()

    async def list_payments(self) -> List[dict]:
        return await self._run(self._list_payments)

    def _list_payments(self) -> List[dict]:
        with self.session_factory() as db:
            rows = db.scalars(select(Payment).order_by(Payment.created_at.desc(), Payment.id.desc()))
            return [p.to_dict() for p in rows]

    async def latest_payment(self, payment_id: str) -> Optional[dict]:
        return await self._run(self._latest_payment, payment_id)

    def _latest_payment(self, payment_id: str) -> Optional[dict]:
        with self.session_factory() as db:
            payment = db.scalars(
                select(Payment)
                .where(Payment.payment_id == payment_id)
                .order_by(Payment.created_at.desc(), Payment.id.desc())
                .limit(1)
            ).first()
            return payment.to_dict() if payment else None

    async def payment_facts(self) -> List[tuple]:
        """(amount, status, created_at) for every payment"""
        return await self._run(self._payment_facts)

    def _payment_facts(self) -> List[tuple]:
        with self.session_factory() as db:
            rows = db.execute(select(Payment.amount, Payment.status, Payment.created_at))
            return [tuple(row) for row in rows]

    # Subscriptions

    async def add_subscription(self, email: str) -> dict:
        return await self._run(self._add_subscription, email)

    def _add_subscription(self, email: str) -> dict:
        with self.session_factory() as db:
            exists = db.scalars(select(Subscription).where(Subscription.email == email)).first()
            if exists:
                raise AlreadySubscribed(email)

            subscription = Subscription(email=email)
            db.add(subscription)
            try:
                db.commit()
            except IntegrityError as e:
                db.rollback()
                raise AlreadySubscribed(email) from e
            db.refresh(subscription)
            return subscription.to_dict()

    async def list_subscriptions(self) -> List[dict]:
        return await self._run(self._list_subscriptions)

    def _list_subscriptions(self) -> List[dict]:
        with self.session_factory() as db:
            rows = db.scalars(select(Subscription).order_by(Subscription.created_at.desc(), Subscription.id.desc()))
            return [s.to_dict() for s in rows]

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import func
from sqlmodel import Session, select
from typing import List

from app.database import atomic, get_session
from app.models.transaction import Transaction
from app.models.wallet import Wallet
from app.schemas.wallet import WalletCreate, WalletRead, WalletUpdate
from app.utils.wallet_helpers import get_wallet

router = APIRouter(prefix="/wallets", tags=["wallets"])


def _check_unique_name(session: Session, name: str):
    existing = session.exec(select(Wallet).where(Wallet.name == name)).first()
    if existing:
        raise HTTPException(status_code=400, detail="Ya tienes una billetera con este nombre.")


@router.post("", response_model=WalletRead)
@router.post("/", response_model=WalletRead)
def create_wallet(wallet_data: WalletCreate, session: Session = Depends(get_session)):
    _check_unique_name(session, wallet_data.name)

    with atomic(session, "crear la billetera"):
        wallet = Wallet(**wallet_data.model_dump())
        session.add(wallet)

    session.refresh(wallet)
    return wallet


@router.get("", response_model=List[WalletRead])
@router.get("/", response_model=List[WalletRead])
def list_wallets(session: Session = Depends(get_session)):
    return session.exec(select(Wallet).order_by(Wallet.id)).all()


@router.get("/{wallet_id}", response_model=WalletRead)
def read_wallet(wallet_id: int, session: Session = Depends(get_session)):
    return get_wallet(session, wallet_id)


@router.patch("/{wallet_id}", response_model=WalletRead)
def update_wallet(wallet_id: int, wallet_data: WalletUpdate, session: Session = Depends(get_session)):
    with atomic(session, "actualizar la billetera"):
        wallet = get_wallet(session, wallet_id)
        if wallet_data.name is not None and wallet_data.name != wallet.name:
            _check_unique_name(session, wallet_data.name)
            wallet.name = wallet_data.name
        session.add(wallet)

    session.refresh(wallet)
    return wallet


@router.delete("/{wallet_id}")
def delete_wallet(wallet_id: int, session: Session = Depends(get_session)):
    with atomic(session, "eliminar la billetera"):
        wallet = get_wallet(session, wallet_id)

        tx_count = session.exec(
            select(func.count()).select_from(Transaction).where(
                (Transaction.wallet_id == wallet_id) | (Transaction.to_wallet_id == wallet_id)
            )
        ).one()
        if tx_count:
            raise HTTPException(
                status_code=400,
                detail="No puedes eliminar esta billetera porque tiene transacciones asociadas.",
            )

        session.delete(wallet)

    return {"message": "Billetera eliminada correctamente"}

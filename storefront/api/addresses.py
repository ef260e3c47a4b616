from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import List
from storefront.api.deps import get_db, require_role
from storefront.db.models import Address, User
from storefront.schemas import AddressCreate, AddressRead

router = APIRouter()

@router.get('/', response_model=List[AddressRead])
def my_addresses(user: User = Depends(require_role('user'))):
    return user.addresses

@router.patch('/', response_model=List[AddressRead])
def add_address(payload: AddressCreate, user: User = Depends(require_role('user')), db: Session = Depends(get_db)):
    user.addresses.append(Address(**payload.model_dump()))
    db.commit(); db.refresh(user)
    return user.addresses

@router.delete('/{address_id}', response_model=List[AddressRead])
def remove_address(address_id: int, user: User = Depends(require_role('user')), db: Session = Depends(get_db)):
    address = next((a for a in user.addresses if a.id == address_id), None)
    if not address: raise HTTPException(status_code=404, detail='Address not found')
    user.addresses.remove(address)
    db.commit(); db.refresh(user)
    return user.addresses

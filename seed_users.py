#!/usr/bin/env python
from supplier_eval.db import Base
from supplier_eval.db.session import engine, session_scope
from supplier_eval.db.models import User, Vendor
from supplier_eval.app.core.config import settings
from supplier_eval.app.services.bootstrap import ensure_default_roles
from supplier_eval.app.services.tokens import issue_caller_token

def get_or_create(db, email, **kwargs):
    obj = db.query(User).filter(User.email == email).first()
    if obj:
        return obj
    obj = User(email=email, **kwargs)
    db.add(obj)
    db.commit()
    db.refresh(obj)
    return obj

def get_or_create_vendor(db, name):
    obj = db.query(Vendor).filter(Vendor.name == name).first()
    if obj:
        return obj
    obj = Vendor(name=name)
    db.add(obj)
    db.commit()
    db.refresh(obj)
    return obj

def main():
    Base.metadata.create_all(bind=engine)
    with session_scope() as db:
        roles = ensure_default_roles(db)
        vendor = get_or_create_vendor(db, "Acme Supplies")

        admin = get_or_create(db, "admin@example.com", full_name="Ada Admin",
                              role_id=roles[settings.ADMIN_ROLE_NAME].role_id)
        evaluator = get_or_create(db, "evaluator@example.com", full_name="Eve Evaluator",
                                  role_id=roles[settings.EVALUATOR_ROLE_NAME].role_id)
        supplier = get_or_create(db, "supplier@example.com", full_name="Sol Supplier",
                                 role_id=roles[settings.SUPPLIER_ROLE_NAME].role_id, vendor_id=vendor.vendor_id)

        print("Seeded users:")
        for label, user in (("Admin", admin), ("Evaluator", evaluator), ("Supplier", supplier)):
            print(f"{label + ':':<11} {user.user_id}  token={issue_caller_token(user.user_id)}")

if __name__ == "__main__":
    main()

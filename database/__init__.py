from .db import DBBase, DBBaseClass, SessionLocal, db_engine, init_models

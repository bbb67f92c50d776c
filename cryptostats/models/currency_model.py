from sqlalchemy import Column, String
from cryptostats.database import Base


class Currency(Base):
    __tablename__ = "currency"
    symbol = Column(String, primary_key=True)  # 'BTC', 'ETH', ...

    def __repr__(self):
        return f"Currency(symbol={self.symbol!r})"

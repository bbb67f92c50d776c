from sqlalchemy import Column, Integer, String, Numeric, DateTime, ForeignKey, Index
from cryptostats.database import Base


class PricePoint(Base):
    __tablename__ = "currency_stats"
    __table_args__ = (
        Index("idx_date_time", "date_time"),
        Index("idx_currency_id", "currency_id"),
        Index("idx_price", "price"),
    )
    id = Column(Integer, primary_key=True)
    # naive local time, as read from the uploaded epoch millis
    date_time = Column(DateTime, nullable=False)
    currency_id = Column(
        String,
        ForeignKey("currency.symbol", name="fk_currency_id"),
        nullable=False,
    )
    price = Column(Numeric(25, 7), nullable=False)

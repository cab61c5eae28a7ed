"""
Reverse Dutch Auction (RDA)

A descending-price auction over an escrowed token lot:
- Linear price decay from a starting price
- Seller-funded escrow, whole-lot sale to the first buyer
- All-or-nothing settlement over in-memory token ledgers
- Local deployments driven from the command line
"""

__version__ = "0.1.0"

"""
Clubhouse - cricket club management service

Responsibilities:
- Tournament registry and match schedule
- Team, team-owner and auction-player registration
- Auction bookkeeping (player status, team budgets)
- Admin authentication and sessions
- Email notifications
- Payment settings and landing-page content
"""

"""
memberscope - Directory Group Membership Reports
================================================

A Python toolkit for reporting on Active Directory / LDAP group memberships:
which groups two identities share or differ on, which identities reach a
group, and which groups have no members.

Architecture Overview:
----------------------
- model/: Distinguished-name handling, typed data models, membership graph
- analysis/: Pure comparison and aggregation of membership lists
- ingestion/: Read-only ldap3 access to the directory
- reporting/: Tabular exports and the CSV run log
- bridge.py: Workflows tying the pieces together
- main.py: Command-line interface

Design Decisions:
-----------------
1. All name parsing lives in model/dn.py and is shared by every report
2. The analysis layer never performs I/O; it is deterministic for equal input
3. Directory context is passed explicitly as a DirectorySession
4. Nothing ever writes to the directory
"""

__version__ = "1.0.0"
__author__ = "memberscope developers"

from .config import ScopeConfig

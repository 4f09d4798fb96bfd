"""
Rent accounting engine
Rent schedules, occupancy classification and rent reporting over backend lease/payment data
"""

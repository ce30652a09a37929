from django.contrib import admin

admin.site.site_title = 'GFM Portal Admin'
admin.site.site_header = 'GFM Portal Administration'
admin.site.index_title = 'Attendance & Mentoring'

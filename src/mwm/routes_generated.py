"""Generated by ``mwm routes build``. Do not edit."""

ROOT = '__root.html'

LAYOUTS = ('admin/_layout.py', 'cms/_layout.py', 'users/_layout.py')

ROUTES = (('/', 'index.py', (), ('handler',)),
 ('/admin/permissions',
  'admin/permissions/index.py',
  ('admin/_layout.py',),
  ('handler', 'post')),
 ('/admin/permissions/:id',
  'admin/permissions/$id.py',
  ('admin/_layout.py',),
  ('handler', 'post')),
 ('/admin/permissions/:id/delete',
  'admin/permissions/$id.delete.py',
  ('admin/_layout.py',),
  ('post',)),
 ('/admin/roles', 'admin/roles/index.py', ('admin/_layout.py',), ('handler', 'post')),
 ('/admin/roles/:id', 'admin/roles/$id.py', ('admin/_layout.py',), ('handler', 'post')),
 ('/admin/roles/:id/delete',
  'admin/roles/$id.delete.py',
  ('admin/_layout.py',),
  ('post',)),
 ('/cms', 'cms/index.py', ('cms/_layout.py',), ('handler',)),
 ('/identity/sign-in', 'identity/sign-in.py', (), ('handler', 'post')),
 ('/identity/sign-out', 'identity/sign-out.py', (), ('post',)),
 ('/users', 'users/index.py', ('users/_layout.py',), ('handler',)),
 ('/users/:id/edit', 'users/$id.edit.py', ('users/_layout.py',), ('handler',)))

STATIC_ROUTES = (('/bundle.js', 'bundle.js', 'text/javascript'),
 ('/styles.css', 'styles.css', 'text/css'))
